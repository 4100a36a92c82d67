"""
Configuration for StoryDigest.

Supports loading from:
1. Environment variables (highest priority)
2. YAML config file
3. Default values (fallback)
"""

import os
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    log_to_file: bool = False
    log_dir: str = "logs"
    file_rotation: str = "10 MB"
    file_retention: str = "7 days"
    compression: str = "zip"
    serialize: bool = True
    debug: bool = False  # surfaces heuristic degradations


class StorageConfig(BaseModel):
    """Durable state storage configuration."""

    backend: str = "json"  # json, memory
    state_dir: str = ".storydigest"


class TokenizerConfig(BaseModel):
    """Token counting configuration."""

    provider: str = "tiktoken"  # tiktoken, approximate
    model: str = "cl100k_base"
    chars_per_token: float = 4.0


class ChunkingConfig(BaseModel):
    """Chunk planning thresholds for large inputs."""

    word_threshold: int = 3000
    token_threshold: int = 4500
    char_threshold: int = 20000
    target_chunk_words: int = 1500
    overlap_chars: int = 200
    search_window: int = 400


class ExtractionConfig(BaseModel):
    """Statement extraction and association configuration."""

    min_statement_words: int = 4
    match_threshold: float = 0.6
    continuity_score: float = 0.6
    continuity_min_confidence: float = 0.75


class ResolutionConfig(BaseModel):
    """Orphan and contradiction resolution configuration."""

    accept_threshold: float = 0.6
    clear_winner_margin: float = 0.15
    ambiguous_margin: float = 0.1
    cluster_min_shared_words: int = 2
    cluster_min_word_length: int = 4
    cluster_min_size: int = 2
    catch_all_threshold: float = 0.3
    catch_all_title: str = "General Requirements"
    auto_resolve_threshold: float = 0.8
    distance_threshold: int = 10


class ClarificationConfig(BaseModel):
    """Clarification loop configuration."""

    default_language: str = "en"
    batch_size: int = 5
    voice_filler_density: float = 0.06
    voice_run_on_words: int = 35


class StoryConfig(BaseModel):
    """Story synthesis configuration."""

    default_role: str = "user"
    medium_complexity_criteria: int = 3
    high_complexity_criteria: int = 6


class Config(BaseModel):
    """Main configuration."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    tokenizer: TokenizerConfig = Field(default_factory=TokenizerConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
    resolution: ResolutionConfig = Field(default_factory=ResolutionConfig)
    clarification: ClarificationConfig = Field(default_factory=ClarificationConfig)
    stories: StoryConfig = Field(default_factory=StoryConfig)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> "Config":
        """
        Load configuration from environment variables.

        Priority: .env file -> system environment variables -> defaults

        Args:
            env_file: Optional path to .env file (default: .env in project root)

        Returns:
            Config instance

        Environment variables:
            STORYDIGEST_LOG_LEVEL: Log level (INFO, DEBUG, ...)
            STORYDIGEST_LOG_TO_FILE: Also write rotated JSON logs
            STORYDIGEST_LOG_DIR: Directory for log files
            STORYDIGEST_DEBUG: Log heuristic degradations
            STORYDIGEST_STORAGE_BACKEND: Store backend (json, memory)
            STORYDIGEST_STATE_DIR: Directory holding session documents
            STORYDIGEST_TOKENIZER_PROVIDER: tiktoken or approximate
            STORYDIGEST_TOKENIZER_MODEL: tiktoken encoding name
            STORYDIGEST_CHUNK_WORD_THRESHOLD: Words before chunking kicks in
            STORYDIGEST_CHUNK_TARGET_WORDS: Target words per chunk
            STORYDIGEST_CHUNK_OVERLAP_CHARS: Overlap between chunks
            STORYDIGEST_DEFAULT_LANGUAGE: Fallback language for question templates
            STORYDIGEST_QUESTION_BATCH_SIZE: Questions presented per turn
        """
        if env_file:
            load_dotenv(env_file)
        elif Path(".env").exists():
            load_dotenv()

        def get_env(key: str, default: Any = None) -> Any:
            """Get environment variable with type conversion."""
            value = os.getenv(key)
            if value is None:
                return default
            if value == "":
                return default
            if isinstance(default, bool):
                return str(value).lower() in ("true", "1", "yes")
            if isinstance(default, int):
                return int(value)
            if isinstance(default, float):
                return float(value)
            return value

        return cls(
            logging=LoggingConfig(
                level=get_env("STORYDIGEST_LOG_LEVEL", "INFO"),
                log_to_file=get_env("STORYDIGEST_LOG_TO_FILE", False),
                log_dir=get_env("STORYDIGEST_LOG_DIR", "logs"),
                file_rotation=get_env("STORYDIGEST_LOG_FILE_ROTATION", "10 MB"),
                file_retention=get_env("STORYDIGEST_LOG_FILE_RETENTION", "7 days"),
                compression=get_env("STORYDIGEST_LOG_COMPRESSION", "zip"),
                serialize=get_env("STORYDIGEST_LOG_SERIALIZE", True),
                debug=get_env("STORYDIGEST_DEBUG", False),
            ),
            storage=StorageConfig(
                backend=get_env("STORYDIGEST_STORAGE_BACKEND", "json"),
                state_dir=get_env("STORYDIGEST_STATE_DIR", ".storydigest"),
            ),
            tokenizer=TokenizerConfig(
                provider=get_env("STORYDIGEST_TOKENIZER_PROVIDER", "tiktoken"),
                model=get_env("STORYDIGEST_TOKENIZER_MODEL", "cl100k_base"),
                chars_per_token=get_env("STORYDIGEST_TOKENIZER_CHARS_PER_TOKEN", 4.0),
            ),
            chunking=ChunkingConfig(
                word_threshold=get_env("STORYDIGEST_CHUNK_WORD_THRESHOLD", 3000),
                token_threshold=get_env("STORYDIGEST_CHUNK_TOKEN_THRESHOLD", 4500),
                char_threshold=get_env("STORYDIGEST_CHUNK_CHAR_THRESHOLD", 20000),
                target_chunk_words=get_env("STORYDIGEST_CHUNK_TARGET_WORDS", 1500),
                overlap_chars=get_env("STORYDIGEST_CHUNK_OVERLAP_CHARS", 200),
                search_window=get_env("STORYDIGEST_CHUNK_SEARCH_WINDOW", 400),
            ),
            clarification=ClarificationConfig(
                default_language=get_env("STORYDIGEST_DEFAULT_LANGUAGE", "en"),
                batch_size=get_env("STORYDIGEST_QUESTION_BATCH_SIZE", 5),
            ),
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "Config":
        """
        Load configuration from YAML file.

        Args:
            yaml_path: Path to YAML configuration file

        Returns:
            Config instance

        Raises:
            FileNotFoundError: If YAML file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Config file not found: {yaml_path}")

        with open(yaml_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)

    @classmethod
    def from_env_or_yaml(
        cls, yaml_path: str | Path | None = None, env_file: str | Path | None = None
    ) -> "Config":
        """
        Load configuration with priority: env vars > YAML > defaults.

        Args:
            yaml_path: Optional path to YAML config
            env_file: Optional path to .env file

        Returns:
            Config instance
        """
        if yaml_path and Path(yaml_path).exists():
            with open(yaml_path) as f:
                config_dict = yaml.safe_load(f) or {}
        else:
            config_dict = {}

        env_config = cls.from_env(env_file=env_file)

        final_dict = {**config_dict}

        # Apply env overrides (non-default values)
        default = cls()
        for section in (
            "logging",
            "storage",
            "tokenizer",
            "chunking",
            "clarification",
        ):
            env_section = getattr(env_config, section)
            if env_section != getattr(default, section):
                final_dict[section] = env_section.model_dump()

        return cls(**final_dict) if final_dict else env_config


# Default config instance
default_config = Config()
