import os

# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./viagrua.db")

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "720"))

# ✅ MercadoPago
MERCADOPAGO_ACCESS_TOKEN = os.getenv("MERCADOPAGO_ACCESS_TOKEN")
PAYMENT_CURRENCY = os.getenv("PAYMENT_CURRENCY", "UYU")

# ✅ Public URLs (back_urls / notification_url for checkout)
PUBLIC_URL = os.getenv("PUBLIC_URL", "http://localhost:3000").rstrip("/")
API_PUBLIC_URL = os.getenv("API_PUBLIC_URL", "http://localhost:8000").rstrip("/")
MP_SUCCESS_URL = os.getenv("MP_SUCCESS_URL", f"{PUBLIC_URL}/dashboard")
MP_FAILURE_URL = os.getenv("MP_FAILURE_URL", f"{PUBLIC_URL}/dashboard")
MP_PENDING_URL = os.getenv("MP_PENDING_URL", f"{PUBLIC_URL}/dashboard")
MP_WEBHOOK_URL = os.getenv("MP_WEBHOOK_URL", f"{API_PUBLIC_URL}/api/webhook-mercadopago")

# ✅ Photo storage
PHOTO_STORAGE_DIR = os.getenv("PHOTO_STORAGE_DIR", "fotos-traslados")
PHOTO_PUBLIC_PATH = "/fotos"

# ✅ Plans and team
FREE_TRASLADOS_PER_MONTH = int(os.getenv("FREE_TRASLADOS_PER_MONTH", "30"))
INVITATION_TTL_DAYS = int(os.getenv("INVITATION_TTL_DAYS", "7"))

# ✅ Runtime
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
RUN_MIGRATIONS = os.getenv("RUN_MIGRATIONS", "0") == "1"
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
    if origin.strip()
]
