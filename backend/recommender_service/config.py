import os
from pathlib import Path
from typing import Optional, List

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if exists
env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(dotenv_path=env_path)


def _split_list(value: Optional[str]) -> List[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


class Settings:
    # Operator override cho cutoff: epoch ms hoặc "2020-01-02T10:00:00"
    recommender_cutoff: Optional[str] = os.getenv("RECOMMENDER_CUTOFF") or None

    # Peers: danh sách base URL cố định, và/hoặc registry
    peers: List[str] = _split_list(os.getenv("RECOMMENDER_PEERS"))
    registry_url: Optional[str] = os.getenv("REGISTRY_URL") or None
    service_name: str = os.getenv("SERVICE_NAME", "recommender")
    self_address: Optional[str] = os.getenv("SELF_ADDRESS") or None
    peer_timeout_seconds: float = float(os.getenv("PEER_TIMEOUT_SECONDS", "5"))

    # Persistence: REST service (ưu tiên) hoặc database trực tiếp
    persistence_url: Optional[str] = os.getenv("PERSISTENCE_URL") or None
    database_url: Optional[str] = os.getenv("DATABASE_URL") or None
    persistence_timeout_seconds: float = float(os.getenv("PERSISTENCE_TIMEOUT_SECONDS", "30"))

    # Training loop
    retrain_retry_seconds: float = float(os.getenv("RETRAIN_RETRY_SECONDS", "10"))
    retrain_loop_seconds: float = float(os.getenv("RETRAIN_LOOP_SECONDS", "0"))  # 0 = không retrain định kỳ

    max_recommendations: int = int(os.getenv("MAX_RECOMMENDATIONS", "10"))

    # CORS Settings
    cors_origins: List[str] = _split_list(
        os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000")
    )


settings = Settings()
