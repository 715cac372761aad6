from typing import Literal
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
    """
    Classification engine settings. Pydantic's BaseSettings will automatically
    load these from CLASSIFIER_* environment variables or a .env file.
    """
    # --- Logging ---
    LOG_LEVEL: str = Field("INFO", description="Level applied to every classifier logger.")

    # --- Hierarchy ---
    MAX_HIERARCHY_DEPTH: int = Field(64, ge=0, le=500, description="Most ancestors a group may have before the group set is rejected.")

    # --- Merge policy ---
    MERGE_TIE_BREAK: Literal["input_order", "group_id", "name"] = Field(
        "input_order",
        description="Ordering between unrelated groups at the same depth when merging classes, variables and environment."
    )

    model_config = SettingsConfigDict(env_prefix='CLASSIFIER_', env_file='.env', env_file_encoding='utf-8', extra='ignore')

settings = Settings()
