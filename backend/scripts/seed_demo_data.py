import asyncio
import sys
from datetime import date
from pathlib import Path
from decimal import Decimal

"""
Seed demo kitchen data (ingredients, exchange rates, recipes with a sub-recipe) into the DB.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`
"""

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from sqlalchemy import func, select, delete

from db.database import async_session_maker, create_db_and_tables
from db.exchange_rate import ExchangeRate
from db.ingredient import Ingredient
from db.recipe import Recipe
from db.recipe_component import RecipeComponent


async def get_or_create_ingredient(
    session,
    name: str,
    unit: str,
    price: Decimal,
    currency: str = "USD",
    stock: Decimal = Decimal("0"),
    min_level: Decimal = Decimal("0"),
) -> Ingredient:
    result = await session.execute(
        select(Ingredient).where(func.lower(Ingredient.name) == name.strip().lower())
    )
    ingredient = result.scalar_one_or_none()
    if ingredient:
        # Keep price up-to-date if you re-run seed with new values
        ingredient.price_per_unit = price
        ingredient.currency = currency
        await session.flush()
        return ingredient

    ingredient = Ingredient(
        name=name.strip(),
        unit_of_measure=unit,
        price_per_unit=price,
        currency=currency,
        current_stock=stock,
        min_stock_level=min_level,
    )
    session.add(ingredient)
    await session.flush()
    return ingredient


async def set_rate(session, from_currency: str, to_currency: str, rate: Decimal) -> None:
    today = date.today()
    result = await session.execute(
        select(ExchangeRate).where(
            ExchangeRate.from_currency == from_currency,
            ExchangeRate.to_currency == to_currency,
            ExchangeRate.effective_date == today,
        )
    )
    row = result.scalar_one_or_none()
    if row:
        row.rate = rate
    else:
        session.add(
            ExchangeRate(
                from_currency=from_currency,
                to_currency=to_currency,
                rate=rate,
                effective_date=today,
                source="seed",
            )
        )
    await session.flush()


async def upsert_recipe(session, name: str, servings: Decimal, components: list[dict], **fields) -> Recipe:
    result = await session.execute(select(Recipe).where(func.lower(Recipe.name) == name.strip().lower()))
    recipe = result.scalar_one_or_none()
    if not recipe:
        recipe = Recipe(name=name.strip(), servings=servings, **fields)
        session.add(recipe)
        await session.flush()
    else:
        recipe.servings = servings
        for key, value in fields.items():
            setattr(recipe, key, value)

        # Replace component lines
        await session.execute(delete(RecipeComponent).where(RecipeComponent.recipe_id == recipe.id))
        await session.flush()

    for order, item in enumerate(components):
        session.add(
            RecipeComponent(
                recipe_id=recipe.id,
                ingredient_id=item.get("ingredient_id"),
                sub_recipe_id=item.get("sub_recipe_id"),
                quantity=Decimal(str(item["quantity"])),
                unit=item["unit"],
                sort_order=order,
            )
        )

    await session.flush()
    return recipe


async def seed():
    await create_db_and_tables()

    async with async_session_maker() as session:
        async with session.begin():
            # Ingredients (prices are example values)
            flour = await get_or_create_ingredient(session, "Flour", "kg", Decimal("1.20"), stock=Decimal("25"), min_level=Decimal("10"))
            butter = await get_or_create_ingredient(session, "Butter", "kg", Decimal("9.50"), "EUR", Decimal("4"), Decimal("5"))
            eggs = await get_or_create_ingredient(session, "Eggs", "piece", Decimal("0.30"), stock=Decimal("60"), min_level=Decimal("24"))
            milk = await get_or_create_ingredient(session, "Milk", "l", Decimal("1.10"), stock=Decimal("12"), min_level=Decimal("6"))
            bones = await get_or_create_ingredient(session, "Chicken bones", "kg", Decimal("3.00"), stock=Decimal("8"), min_level=Decimal("2"))
            onion = await get_or_create_ingredient(session, "Onion", "kg", Decimal("1.60"), stock=Decimal("1"), min_level=Decimal("3"))
            salt = await get_or_create_ingredient(session, "Salt", "g", Decimal("0.002"), stock=Decimal("2000"), min_level=Decimal("500"))

            await set_rate(session, "EUR", "USD", Decimal("1.08"))
            await set_rate(session, "GBP", "USD", Decimal("1.27"))

            stock = await upsert_recipe(
                session,
                "Chicken Stock",
                Decimal("8"),
                [
                    {"ingredient_id": bones.id, "quantity": 2, "unit": "kg"},
                    {"ingredient_id": onion.id, "quantity": 500, "unit": "g"},
                    {"ingredient_id": salt.id, "quantity": 20, "unit": "g"},
                ],
                yield_amount=Decimal("4"),
                yield_unit="l",
                waste_buffer_percent=Decimal("5"),
            )

            await upsert_recipe(
                session,
                "Pancakes",
                Decimal("4"),
                [
                    {"ingredient_id": flour.id, "quantity": 250, "unit": "g"},
                    {"ingredient_id": milk.id, "quantity": 2, "unit": "cup"},
                    {"ingredient_id": eggs.id, "quantity": 2, "unit": "piece"},
                    {"ingredient_id": butter.id, "quantity": 40, "unit": "g"},
                ],
                selling_price=Decimal("9.00"),
                target_cost_percentage=Decimal("28"),
            )

            await upsert_recipe(
                session,
                "Chicken Pie",
                Decimal("6"),
                [
                    {"ingredient_id": flour.id, "quantity": 400, "unit": "g"},
                    {"ingredient_id": butter.id, "quantity": 200, "unit": "g"},
                    {"ingredient_id": eggs.id, "quantity": 1, "unit": "piece"},
                    {"sub_recipe_id": stock.id, "quantity": 500, "unit": "ml"},
                ],
                waste_buffer_percent=Decimal("10"),
                selling_price=Decimal("16.00"),
            )


if __name__ == "__main__":
    asyncio.run(seed())
