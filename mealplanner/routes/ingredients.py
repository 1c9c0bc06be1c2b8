"""
Ingredient Routes

Read-only access to the ingredient catalog and the abstract measure table.
"""

from fastapi import APIRouter, HTTPException, status, Query, Path
from typing import Dict, Any, Optional
from mealplanner.services.abstract_measures import list_abstract_measures
from mealplanner.services.ingredient_catalog import ingredient_catalog

router = APIRouter(prefix="/ingredients", tags=["Ingredients"])


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    summary="Search ingredients",
    description="Search the ingredient catalog by name in one language. Without a query, returns the first `limit` ingredients."
)
async def get_ingredients(
    query: Optional[str] = Query(None, description="Text contained in the ingredient name (case-insensitive)"),
    lang: str = Query("es", description="Language of the names to search", pattern="^(es|en)$"),
    limit: int = Query(20, description="Maximum number of ingredients to return", ge=1, le=500)
) -> Dict[str, Any]:
    try:
        ingredients = ingredient_catalog.search(query=query, lang=lang, limit=limit)

        return {
            "success": True,
            "data": {
                "count": len(ingredients),
                "ingredients": ingredients
            }
        }
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch ingredients: {str(e)}"
        )


@router.get(
    "/abstract-measures",
    status_code=status.HTTP_200_OK,
    summary="List abstract measures",
    description="Abstract measures (pinch, splash, ...) with the base unit and amount each one converts to."
)
async def get_abstract_measures() -> Dict[str, Any]:
    measures = list_abstract_measures()
    return {
        "success": True,
        "data": {
            "count": len(measures),
            "measures": measures
        }
    }


@router.get(
    "/category/{category}",
    status_code=status.HTTP_200_OK,
    summary="Get ingredients by category"
)
async def get_ingredients_by_category(
    category: str = Path(..., description="Category name (case-insensitive)")
) -> Dict[str, Any]:
    try:
        ingredients = ingredient_catalog.by_category(category)

        return {
            "success": True,
            "data": {
                "count": len(ingredients),
                "ingredients": ingredients
            }
        }
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch ingredients: {str(e)}"
        )


@router.get(
    "/{ingredient_id}",
    status_code=status.HTTP_200_OK,
    summary="Get ingredient by ID"
)
async def get_ingredient(
    ingredient_id: str = Path(..., description="Ingredient ID")
) -> Dict[str, Any]:
    try:
        ingredient = ingredient_catalog.get_by_id(ingredient_id)

        if not ingredient:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Ingredient not found: {ingredient_id}"
            )

        return {
            "success": True,
            "data": {
                "ingredient": ingredient
            }
        }
    except HTTPException:
        raise
    except Exception as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch ingredient: {str(e)}"
        )
