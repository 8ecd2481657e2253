"""Engine configuration via environment variables."""

from pydantic_settings import BaseSettings

from auditsynth.models.enums import AnalyzerSource


class Settings(BaseSettings):
    # Logging
    log_level: str = "info"
    json_logs: bool = False

    # I/O boundaries
    reports_dir: str = "security-reports"
    output_path: str = "security-reports/synthesis.json"

    # Analyzers whose absence is recorded as a coverage gap
    expected_analyzers: list[AnalyzerSource] = list(AnalyzerSource)
    analyzer_timeout_seconds: float = 300.0

    # Deduplication
    dedup_line_window: int = 3
    keyword_overlap_threshold: float = 0.3
    min_shared_keywords: int = 2

    # Correlation / reporting
    max_chains_per_template: int = 10
    top_risks_limit: int = 10

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_prefix": "AUDITSYNTH_",
    }


settings = Settings()
