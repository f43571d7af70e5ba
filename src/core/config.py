"""
Pipeline settings.

Values come from an optional YAML file, then INGEST_* environment variables
(optionally loaded from a .env file with python-dotenv), falling back to
the production defaults.
"""

import os
from pathlib import Path

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

MAX_FILE_SIZE_BYTES = 200 * 1024 * 1024
DEFAULT_CHUNK_SIZE = 5000
DEFAULT_MAX_WORKERS = 5

# field name -> environment variable
ENV_VARS = {
    "max_file_size_bytes": "INGEST_MAX_FILE_SIZE_BYTES",
    "chunk_size": "INGEST_CHUNK_SIZE",
    "max_workers": "INGEST_MAX_WORKERS",
    "export_dir": "INGEST_EXPORT_DIR",
    "export_prefix": "INGEST_EXPORT_PREFIX",
    "public_base_url": "INGEST_PUBLIC_BASE_URL",
    "require_description": "INGEST_REQUIRE_DESCRIPTION",
    "remove_source": "INGEST_REMOVE_SOURCE",
    "max_failed_ids": "INGEST_MAX_FAILED_IDS",
}


class PipelineSettings(BaseModel):
    """
    Tuning and policy knobs for ingestion and export.

    Attributes:
        max_file_size_bytes: Files strictly larger than this are rejected
        chunk_size: Rows per upsert unit
        max_workers: Chunks allowed in flight against the store at once
        export_dir: Directory export files are written to
        export_prefix: Prefix of generated export filenames
        public_base_url: Base URL export files are served from
        require_description: Also drop rows with an empty description
        remove_source: Delete the consumed input file (temp upload)
        max_failed_ids: Cap on failed natural ids reported in a result
    """

    max_file_size_bytes: int = Field(MAX_FILE_SIZE_BYTES, gt=0)
    chunk_size: int = Field(DEFAULT_CHUNK_SIZE, ge=1)
    max_workers: int = Field(DEFAULT_MAX_WORKERS, ge=1)
    export_dir: Path = Path("exports")
    export_prefix: str = Field("upload_export", min_length=1)
    public_base_url: str = "http://localhost:3000"
    require_description: bool = False
    remove_source: bool = True
    max_failed_ids: int = Field(100, ge=0)

    @classmethod
    def from_env(cls, env_file: str | Path | None = None, **overrides) -> "PipelineSettings":
        """
        Build settings from the environment.

        Args:
            env_file: Optional .env file loaded first (never overrides
                variables that are already set)
            **overrides: Explicit values that win over the environment

        Returns:
            PipelineSettings instance
        """
        if env_file is not None and Path(env_file).exists():
            load_dotenv(env_file, override=False)

        values: dict[str, object] = {}
        for field_name, env_name in ENV_VARS.items():
            raw = os.getenv(env_name)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw.strip()

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_yaml(
        cls, config_path: str | Path, env_file: str | Path | None = None, **overrides
    ) -> "PipelineSettings":
        """
        Build settings from the ``pipeline`` section of a YAML file.

        Expected YAML format:
        ```yaml
        pipeline:
          chunk_size: 5000
          max_workers: 5
          export_dir: exports
        ```

        Environment variables win over the file, explicit overrides win
        over both.

        Raises:
            FileNotFoundError: If the file does not exist
            ValueError: If the file has no 'pipeline' section
        """
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Pipeline configuration file not found: {config_path}")

        with open(config_path) as f:
            config = yaml.safe_load(f) or {}

        section = config.get("pipeline")
        if not isinstance(section, dict):
            raise ValueError("Configuration file must contain a 'pipeline' section")

        unknown = set(section) - set(cls.model_fields)
        if unknown:
            raise ValueError(f"Unknown pipeline settings: {', '.join(sorted(unknown))}")

        env_values = cls.from_env(env_file=env_file).model_dump(exclude_unset=True)
        return cls(**{**section, **env_values, **{k: v for k, v in overrides.items() if v is not None}})
