from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file='.env', env_prefix='LESSON_SCHEDULER_', extra='ignore')

    app_name: str = 'Lesson Scheduler'
    app_env: str = 'local'
    app_timezone: str = 'Asia/Jerusalem'
    slot_granularity_minutes: int = 30
    default_lesson_minutes: int = 45
    max_lesson_minutes: int = 600
    metrics_slow_ms: int = 200
    log_level: str = 'INFO'


settings = Settings()
