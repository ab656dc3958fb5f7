import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from .config import settings
from .database import create_tables
from .errors import register_error_handlers
from .routers import categories, expenses, tags, users
from .schemas import HealthResponse

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)

# Create FastAPI app
app = FastAPI(title=settings.PROJECT_NAME)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_error_handlers(app)

# Create database tables on startup
@app.on_event("startup")
async def startup_event():
    create_tables()

# Include API routers
app.include_router(users.router, prefix=settings.API_PREFIX, tags=["users"])
app.include_router(categories.router, prefix=f"{settings.API_PREFIX}/categories", tags=["categories"])
app.include_router(expenses.router, prefix=f"{settings.API_PREFIX}/expenses", tags=["expenses"])
app.include_router(tags.router, prefix=f"{settings.API_PREFIX}/tags", tags=["tags"])

@app.get("/health", response_model=HealthResponse)
async def health():
    return {"status": "ok"}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
