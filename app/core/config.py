import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./interview_hub.db")

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

# ✅ OpenAI (Analysis Oracle)
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
ANALYSIS_TIMEOUT_SECONDS = float(os.getenv("ANALYSIS_TIMEOUT_SECONDS", "60"))

# ✅ VideoSDK (Room Provisioning)
VIDEOSDK_API_KEY = os.getenv("VIDEOSDK_API_KEY")
VIDEOSDK_API_ENDPOINT = os.getenv("VIDEOSDK_API_ENDPOINT", "https://api.videosdk.live/v2")
VIDEOSDK_TIMEOUT_SECONDS = float(os.getenv("VIDEOSDK_TIMEOUT_SECONDS", "10"))
VIDEOSDK_TOKEN_TTL_SECONDS = int(os.getenv("VIDEOSDK_TOKEN_TTL_SECONDS", str(2 * 60 * 60)))

# "degrade" stores a locally generated room id when provisioning fails, "fail" surfaces a 500
ROOM_FALLBACK_POLICY = os.getenv("ROOM_FALLBACK_POLICY", "degrade")

# ✅ App
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
