import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from viagrua.core import config
from viagrua.core.logging_config import setup_logging
from viagrua.db.init_db import init_db
from viagrua.db.migrate import run_migrations

# ✅ Import All API Routes
from viagrua.api.routes import auth, plan, traslados, team, gastos, billing, health


setup_logging(config.LOG_LEVEL)


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="ViaGrua API")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(plan.router)
app.include_router(traslados.router)
app.include_router(team.router)
app.include_router(gastos.router)
app.include_router(billing.router)
app.include_router(health.router)

os.makedirs(config.PHOTO_STORAGE_DIR, exist_ok=True)
app.mount(config.PHOTO_PUBLIC_PATH, StaticFiles(directory=config.PHOTO_STORAGE_DIR), name="fotos")


@app.on_event("startup")
def on_startup():
    if config.RUN_MIGRATIONS:
        run_migrations()
    else:
        init_db()


# ============================================
# ✅ ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "ViaGrua API running"}
