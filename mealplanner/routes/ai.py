# mealplanner/routes/ai.py

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List, Union
from mealplanner.services import errors
from mealplanner.services.meal_generation_service import meal_generation_service, parse_start_date

router = APIRouter(prefix="/ai", tags=["AI Meal Plan Generation"])


class RecipeIngredientRef(BaseModel):
    """Ingredient of a recipe snapshot, as shown to the model"""
    name: str
    quantity: Optional[float] = None
    unit: Optional[str] = None


class RecipeRef(BaseModel):
    """Snapshot of a favorite recipe supplied by the caller"""
    id: str = Field(..., description="Recipe ID")
    title: str = Field("", description="Recipe title")
    tags: List[str] = Field(default_factory=list, description="Meal-time and course tags")
    prep_time: Optional[int] = Field(None, alias="prepTime", ge=0, description="Preparation time in minutes")
    ingredients: List[Union[RecipeIngredientRef, str]] = Field(default_factory=list)

    class Config:
        populate_by_name = True


class GenerationPreferences(BaseModel):
    """Plan-wide preferences"""
    duration: int = Field(..., ge=1, description="Number of days to plan, starting today")
    people: int = Field(1, ge=1, description="Number of people eating")
    max_prep_time: Optional[int] = Field(None, alias="maxPrepTime", ge=0, description="Maximum preparation time in minutes")

    class Config:
        populate_by_name = True


class GenerateMealPlanRequest(BaseModel):
    """Request to generate a meal plan from favorite recipes"""
    favorite_recipes: List[RecipeRef] = Field(default_factory=list, alias="favoriteRecipes")
    preferences: GenerationPreferences
    selected_meal_types: List[str] = Field(
        default_factory=list,
        alias="selectedMealTypes",
        description="Any of breakfast, lunch, dinner, snack"
    )
    start_date: Optional[str] = Field(
        None,
        alias="startDate",
        description="Start date in YYYY-MM-DD format. Defaults to today if not provided"
    )

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "favoriteRecipes": [
                    {
                        "id": "r1",
                        "title": "Paella de verduras",
                        "tags": ["comida", "plato único"],
                        "prepTime": 45,
                        "ingredients": [{"name": "Arroz", "quantity": 300, "unit": "g"}]
                    }
                ],
                "preferences": {"duration": 7, "people": 2, "maxPrepTime": 60},
                "selectedMealTypes": ["lunch"]
            }
        }

    def recipes_as_dicts(self) -> List[Dict[str, Any]]:
        return [recipe.model_dump(by_alias=True) for recipe in self.favorite_recipes]

    def preferences_as_dict(self) -> Dict[str, Any]:
        return self.preferences.model_dump(by_alias=True)


@router.post(
    "/generate-meal-plan",
    status_code=status.HTTP_200_OK,
    summary="Generate a meal plan with AI",
    description="""
    Generate a day-by-day meal plan from the user's favorite recipes.

    The plan is only returned when it passed validation: every day in the
    requested range is present, every recipe id is one of the favorites, and
    lunch/dinner are either one standalone dish or a first + second course.

    **Response:**
    ```json
    {
      "success": true,
      "mealPlan": {
        "2026-01-29": {"lunch": [{"recipeId": "r1", "notes": ""}]}
      },
      "source": "groq"
    }
    ```
    """
)
def generate_meal_plan(request: GenerateMealPlanRequest) -> Dict[str, Any]:
    """
    Generate a meal plan. Runs in the threadpool: the model calls block.
    """
    try:
        start_date = parse_start_date(request.start_date)

        return meal_generation_service.generate_meal_plan(
            favorite_recipes=request.recipes_as_dicts(),
            preferences=request.preferences_as_dict(),
            selected_meal_types=request.selected_meal_types,
            start_date=start_date
        )
    except HTTPException:
        raise
    except errors.ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except errors.GenerationExhausted as e:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to generate meal plan: {str(e)}"
        )


@router.post(
    "/preview-prompt",
    status_code=status.HTTP_200_OK,
    summary="Preview the generation prompt",
    description="""
    Return the prompt(s) that would be sent to the model for this request,
    without calling it. Plans longer than a week are split into weekly batches,
    one prompt each. Also reports how many favorites carry no meal-time tag and
    were therefore left out.
    """
)
async def preview_prompt(request: GenerateMealPlanRequest) -> Dict[str, Any]:
    """Build the prompts for display/debugging"""
    try:
        start_date = parse_start_date(request.start_date)

        prompts = meal_generation_service.build_prompts(
            favorite_recipes=request.recipes_as_dicts(),
            preferences=request.preferences_as_dict(),
            selected_meal_types=request.selected_meal_types,
            start_date=start_date
        )

        return {
            "success": True,
            "message": f"Built {len(prompts['batches'])} prompt(s)",
            "data": prompts
        }
    except errors.ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to build prompt: {str(e)}"
        )
