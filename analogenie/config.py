from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # LLM provider
    llm_provider: str = "anthropic"  # anthropic | openrouter
    anthropic_api_key: str = ""
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    default_model: str = "claude-3-7-sonnet-20250219"
    openrouter_model: str = ""  # optional override when llm_provider=openrouter
    llm_max_tokens: int = 4000

    # Stage system prompts (empty falls back to the bundled catalog)
    system_prompt_1: str = ""
    system_prompt_2: str = ""
    system_prompt_3: str = ""

    # Research providers
    perplexity_api_key: str = ""
    perplexity_url: str = "https://api.perplexity.ai/research"
    elicit_api_key: str = ""
    elicit_url: str = "https://api.elicit.org/v1/search"
    research_timeout_seconds: float = 30.0

    # Retry policy for remote calls
    retry_max: int = 3
    retry_delay_seconds: float = 1.0

    # Input limits
    max_concept_words: int = 12

    # App
    app_log_level: str = "INFO"
    noisy_log_level: str = "WARNING"
    log_dir: str = "logs"  # empty disables the file sink

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    def system_prompt_for(self, stage: int) -> str:
        return {
            1: self.system_prompt_1,
            2: self.system_prompt_2,
            3: self.system_prompt_3,
        }.get(stage, "")


settings = Settings()
