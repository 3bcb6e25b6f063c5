from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "code-knowledge-graph"

    env: str = "development"
    LOG_LEVEL: str = "INFO"

    NEO4J_URI: str = "bolt://localhost:7687"
    NEO4J_USERNAME: str = "neo4j"
    NEO4J_PASSWORD: str = ""
    NEO4J_DATABASE: str = "neo4j"
    NEO4J_BATCH_SIZE: int = 500
    NEO4J_CONNECTION_TIMEOUT: float = 60.0
    NEO4J_HEALTHCHECK_RETRIES: int = 5
    NEO4J_HEALTHCHECK_INTERVAL_SECONDS: float = 2.0

    MAX_WORKERS: int = 4
    EXCLUDED_DIRS: frozenset[str] = frozenset({"bin", "obj", ".git", ".vs", "node_modules"})

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
