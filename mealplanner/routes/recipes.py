# mealplanner/routes/recipes.py

from fastapi import APIRouter, HTTPException, status, Query
from pydantic import BaseModel, Field
from typing import Dict, Any, Optional, List, Union
from mealplanner.services import errors
from mealplanner.services.ingredient_normalizer import ingredient_normalizer

router = APIRouter(prefix="/recipes", tags=["Recipes"])


class RawIngredient(BaseModel):
    """Ingredient as entered in the recipe form"""
    ingredient: str = Field(..., description="Ingredient ID or name (Spanish or English)")
    quantity: Optional[Union[float, str]] = None
    unit: Optional[str] = None
    is_abstract: bool = Field(False, alias="isAbstract")
    abstract_measure: Optional[str] = Field(None, alias="abstractMeasure", description="e.g. pizca, chorrito, pinch")
    display_quantity: Optional[str] = Field(None, alias="displayQuantity")
    display_unit: Optional[str] = Field(None, alias="displayUnit")
    estimated_value: Optional[float] = Field(None, alias="estimatedValue")

    class Config:
        populate_by_name = True


class NormalizeIngredientsRequest(BaseModel):
    """Ingredients of a recipe about to be created or updated"""
    ingredients: List[RawIngredient]

    class Config:
        json_schema_extra = {
            "example": {
                "ingredients": [
                    {"ingredient": "Tomate", "quantity": 500, "unit": "g"},
                    {"ingredient": "ing-029", "isAbstract": True, "abstractMeasure": "pizca", "displayQuantity": "2"}
                ]
            }
        }


@router.post(
    "/ingredients/normalize",
    status_code=status.HTTP_200_OK,
    summary="Normalize recipe ingredients",
    description="""
    Convert the ingredients of a recipe into their stored form before the
    recipe is created or updated.

    - Ingredient names are resolved to catalog IDs (ID match first, then Spanish/English name)
    - Abstract measures (pizca, chorrito, ...) are converted to g or ml
    - Units are checked against the ingredient's allowed units. By default a unit
      that is not allowed is kept as entered; with `strictUnits=true` it is rejected.
    """
)
async def normalize_ingredients(
    request: NormalizeIngredientsRequest,
    strict_units: bool = Query(False, alias="strictUnits", description="Reject units not allowed for the ingredient")
) -> Dict[str, Any]:
    try:
        raw_ingredients = [ing.model_dump(by_alias=True) for ing in request.ingredients]

        if strict_units:
            lines = [ingredient_normalizer.normalize_ingredient(raw) for raw in raw_ingredients]
        else:
            lines = ingredient_normalizer.process_ingredients(raw_ingredients)

        return {
            "success": True,
            "message": "Ingredients normalized successfully",
            "data": {
                "count": len(lines),
                "ingredients": lines
            }
        }
    except errors.IngredientNotFound as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except errors.UnitNotAllowed as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "message": str(e),
                "unit": e.unit,
                "allowedUnits": e.allowed_units
            }
        )
    except errors.ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to normalize ingredients: {str(e)}"
        )
