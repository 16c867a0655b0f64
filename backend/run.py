"""
Script để chạy recommender service.
"""
import uvicorn
import os

if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))

    # Chỉ dùng reload trong development
    is_development = os.getenv("ENVIRONMENT", "development").lower() == "development"

    uvicorn.run(
        "recommender_service.main:app",
        host=host,
        port=port,
        reload=is_development,
        log_level=os.getenv("LOG_LEVEL", "info")
    )
