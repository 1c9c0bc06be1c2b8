# mealplanner/main.py

import logging
import os
from typing import List

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mealplanner.routes import ai, ingredients, recipes
from mealplanner.services.meal_generation_service import meal_generation_service

# Load environment variables
load_dotenv()

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def log_level_from_env(default: str = "INFO") -> int:
    """LOG_LEVEL as a logging level; unknown names fall back to INFO."""
    level = getattr(logging, os.getenv("LOG_LEVEL", default).strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    logging.basicConfig(level=log_level_from_env(), format=LOG_FORMAT)


def cors_origins_from_env() -> List[str]:
    # Comma separated list, "*" allows any origin
    origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
    if not origins or "*" in origins:
        return ["*"]
    return origins


configure_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Meal Planner API",
    description="AI meal plans from a household's favorite recipes, plus the ingredient catalog",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins_from_env(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(ai.router)
app.include_router(ingredients.router)
app.include_router(recipes.router)

if not meal_generation_service.generation_client.is_configured:
    logger.warning("GROQ_API_KEY is not set; meal plan generation will fail until it is configured")


@app.get("/")
async def root():
    return {
        "message": "Welcome to Meal Planner API",
        "version": app.version,
        "docs": "/docs",
        "health": "/health",
        "endpoints": {
            "ai": "/ai",
            "ingredients": "/ingredients",
            "recipes": "/recipes"
        }
    }


@app.get("/health")
async def health_check():
    client = meal_generation_service.generation_client
    return {
        "status": "healthy",
        "service": "meal-planner-backend",
        "generation": {
            "configured": client.is_configured,
            "models": client.models,
        },
        "features": ["ai-meal-plan", "ingredient-catalog", "ingredient-normalization"]
    }


# Run with: uvicorn mealplanner.main:app --reload
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "mealplanner.main:app",
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", "8000")),
        reload=os.getenv("DEBUG", "True").lower() in ("true", "1", "yes"),
        log_level=logging.getLevelName(log_level_from_env()).lower(),
    )
