"""
Settings Configuration
Typed defaults validated with Pydantic
"""
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class LLMSettings(BaseSettings):
    """LLM selection per pipeline role"""
    ranker_provider: str = Field(default="DEEPSEEK", description="PROVIDER or PROVIDER:model for ranking")
    summarizer_provider: str = Field(default="DEEPSEEK", description="PROVIDER or PROVIDER:model for summaries")
    temperature: float = Field(default=0.7, description="default sampling temperature")
    max_tokens: int = Field(default=2000, description="default completion budget")
    timeout: float = Field(default=60.0, description="request timeout (s)")

    class Config:
        env_prefix = "LLM_"


class OpenAISettings(BaseSettings):
    """OpenAI endpoint"""
    base_url: str = Field(default="https://api.openai.com/v1")
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="gpt-4o-mini", description="model or model1|model2")

    class Config:
        env_prefix = "OPENAI_"


class DeepSeekSettings(BaseSettings):
    """DeepSeek endpoint (OpenAI compatible)"""
    base_url: str = Field(default="https://api.deepseek.com")
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="deepseek-chat")

    class Config:
        env_prefix = "DEEPSEEK_"


class QwenSettings(BaseSettings):
    """Qwen endpoint (OpenAI compatible mode)"""
    base_url: str = Field(default="https://dashscope.aliyuncs.com/compatible-mode/v1")
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="qwen-plus")

    class Config:
        env_prefix = "QWEN_"


class CustomLLMSettings(BaseSettings):
    """Any other OpenAI compatible endpoint"""
    base_url: Optional[str] = Field(default=None)
    api_key: Optional[str] = Field(default=None)
    model: Optional[str] = Field(default=None)

    class Config:
        env_prefix = "CUSTOM_LLM_"


class AnthropicSettings(BaseSettings):
    """Anthropic API"""
    api_key: Optional[str] = Field(default=None)
    model: str = Field(default="claude-3-5-sonnet-20241022")

    class Config:
        env_prefix = "ANTHROPIC_"


class PipelineSettings(BaseSettings):
    """Digest run parameters"""
    top_n: int = Field(default=10, description="items kept after ranking")
    scrape_concurrency: int = Field(default=4, description="sources scraped in parallel")
    enrich_concurrency: int = Field(default=1, description="items summarized in parallel")
    run_timeout: Optional[float] = Field(default=None, description="wall-clock deadline (s)")
    sources_file: Optional[str] = Field(default=None, description="JSON file listing sources")
    title_prefix: str = Field(default="AI Digest")
    title_max_length: int = Field(default=64)
    ranking_max_attempts: int = Field(default=3)
    ranking_base_delay: float = Field(default=1.0)
    ranking_batch_size: int = Field(default=0, description="0 ranks everything in one call")
    balance_threshold: float = Field(default=1.0, description="warn below this provider balance")
    cover_prompt: str = Field(default="Cover illustration for a daily AI news digest")
    cover_size: str = Field(default="1440*768")
    notifications_dir: Optional[str] = Field(default=None, description="append notifications.jsonl here")

    class Config:
        env_prefix = "PIPELINE_"


class ImageSettings(BaseSettings):
    """Cover image generation"""
    generator: str = Field(default="DASHSCOPE")
    poll_max_attempts: int = Field(default=30)
    poll_interval: float = Field(default=2.0)

    class Config:
        env_prefix = "IMAGE_"


class DashScopeSettings(BaseSettings):
    """DashScope text-to-image API"""
    api_key: Optional[str] = Field(default=None)
    base_url: str = Field(default="https://dashscope.aliyuncs.com/api/v1")
    model: str = Field(default="wanx2.1-t2i-turbo")

    class Config:
        env_prefix = "DASHSCOPE_"


class WeixinSettings(BaseSettings):
    """WeChat official account publisher"""
    app_id: Optional[str] = Field(default=None)
    app_secret: Optional[str] = Field(default=None)
    author: str = Field(default="")
    base_url: str = Field(default="https://api.weixin.qq.com")
    token_safety_margin: float = Field(default=60.0)

    class Config:
        env_prefix = "WEIXIN_"


class BarkSettings(BaseSettings):
    """Bark push notifications"""
    url: str = Field(default="https://api.day.app")
    key: Optional[str] = Field(default=None)
    group: str = Field(default="digest")

    class Config:
        env_prefix = "BARK_"


class TwitterSettings(BaseSettings):
    """Twitter/X API"""
    bearer_token: Optional[str] = Field(default=None)
    max_results: int = Field(default=20)

    class Config:
        env_prefix = "TWITTER_"


class HackerNewsSettings(BaseSettings):
    """Hacker News (Algolia)"""
    max_results: int = Field(default=30)
    request_timeout: float = Field(default=30.0)

    class Config:
        env_prefix = "HACKERNEWS_"


class Settings(BaseSettings):
    """Aggregate of every settings group"""

    llm: LLMSettings = Field(default_factory=LLMSettings)
    openai: OpenAISettings = Field(default_factory=OpenAISettings)
    deepseek: DeepSeekSettings = Field(default_factory=DeepSeekSettings)
    qwen: QwenSettings = Field(default_factory=QwenSettings)
    custom_llm: CustomLLMSettings = Field(default_factory=CustomLLMSettings)
    anthropic: AnthropicSettings = Field(default_factory=AnthropicSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    image: ImageSettings = Field(default_factory=ImageSettings)
    dashscope: DashScopeSettings = Field(default_factory=DashScopeSettings)
    weixin: WeixinSettings = Field(default_factory=WeixinSettings)
    bark: BarkSettings = Field(default_factory=BarkSettings)
    twitter: TwitterSettings = Field(default_factory=TwitterSettings)
    hackernews: HackerNewsSettings = Field(default_factory=HackerNewsSettings)

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @classmethod
    def load_from_env_file(cls, env_path: Optional[Path] = None) -> "Settings":
        """Load ``.env`` (default: project root) into the environment, then build settings"""
        if env_path is None:
            env_path = Path(__file__).parent.parent / ".env"

        if env_path.exists():
            from dotenv import load_dotenv
            load_dotenv(env_path)

        return cls(
            llm=LLMSettings(),
            openai=OpenAISettings(),
            deepseek=DeepSeekSettings(),
            qwen=QwenSettings(),
            custom_llm=CustomLLMSettings(),
            anthropic=AnthropicSettings(),
            pipeline=PipelineSettings(),
            image=ImageSettings(),
            dashscope=DashScopeSettings(),
            weixin=WeixinSettings(),
            bark=BarkSettings(),
            twitter=TwitterSettings(),
            hackernews=HackerNewsSettings(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Process-wide settings instance"""
    return Settings.load_from_env_file()

