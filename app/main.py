from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# ✅ Import All API Routes
from app.api.routes import auth, interviews, assessments, reports, admin, videosdk, health

from app.core.config import LOG_LEVEL, CORS_ORIGINS
from app.core.errors import register_exception_handlers
from app.core.logging_config import setup_logging
from app.db.init_db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(LOG_LEVEL)
    init_db()
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="Interview Hub", lifespan=lifespan)

# ✅ CORS: only the configured frontends
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type"],
)

register_exception_handlers(app)


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(interviews.router)
app.include_router(assessments.router)
app.include_router(reports.router)
app.include_router(admin.router)
app.include_router(videosdk.router)
app.include_router(health.router)


# ============================================
# ✅ ROOT ENDPOINT
# ============================================

@app.get("/")
def root():
    return {"status": "Interview Hub API running"}
