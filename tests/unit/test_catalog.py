from __future__ import annotations

import pytest

from storefront.app.services.catalog import COLORS, CatalogService, ProductValidationError


async def _seed(catalog: CatalogService) -> dict[str, int]:
    ids = {}
    for name, color, description in [
        ("Ruby Swirl", "red", "Deep red glass marble"),
        ("Ocean Cat Eye", "blue", "Blue cat eye with a white core"),
        ("Forest Shooter", "green", "Large shooter, 25% bigger"),
        ("Crimson Mini", "red", "Small red marble"),
    ]:
        product = await catalog.create_product(name=name, price=12.5, color=color, description=description)
        ids[name] = product.id
    return ids


@pytest.mark.anyio
async def test_search_filters_by_text_and_color(temp_session_factory) -> None:
    catalog = CatalogService(temp_session_factory)
    ids = await _seed(catalog)

    everything = await catalog.search()
    assert len(everything) == 4
    # newest first
    assert everything[0].id == ids["Crimson Mini"]

    reds = await catalog.search("", "red")
    assert {p.id for p in reds} == {ids["Ruby Swirl"], ids["Crimson Mini"]}

    assert [p.name for p in await catalog.search("CAT EYE")] == ["Ocean Cat Eye"]
    assert [p.name for p in await catalog.search("white core", "all")] == ["Ocean Cat Eye"]
    assert await catalog.search("cat eye", "red") == []


@pytest.mark.anyio
async def test_search_treats_wildcards_literally(temp_session_factory) -> None:
    catalog = CatalogService(temp_session_factory)
    await _seed(catalog)

    assert [p.name for p in await catalog.search("25%")] == ["Forest Shooter"]
    assert [p.name for p in await catalog.search("%")] == ["Forest Shooter"]
    assert await catalog.search("_") == []


@pytest.mark.anyio
async def test_product_defaults_and_related(temp_session_factory) -> None:
    catalog = CatalogService(temp_session_factory)
    ids = await _seed(catalog)

    ruby = await catalog.get_product(ids["Ruby Swirl"])
    assert ruby is not None
    assert ruby.stock_count == 100
    assert ruby.in_stock is True

    related = await catalog.related_products(ruby)
    assert [p.id for p in related] == [ids["Crimson Mini"]]

    assert await catalog.get_product(9999) is None
    assert {p.color for p in await catalog.list_by_color("RED")} == {"red"}


@pytest.mark.anyio
async def test_list_by_unknown_color_is_rejected(temp_session_factory) -> None:
    catalog = CatalogService(temp_session_factory)
    with pytest.raises(ProductValidationError):
        await catalog.list_by_color("chartreuse")


@pytest.mark.anyio
@pytest.mark.parametrize(
    "fields",
    [
        {"name": "  ", "price": 1, "color": "red"},
        {"name": "Bad", "price": -1, "color": "red"},
        {"name": "Bad", "price": 1, "color": "gold"},
        {"name": "Bad", "price": 1, "color": "red", "stock_count": -3},
    ],
)
async def test_create_product_validation(temp_session_factory, fields) -> None:
    catalog = CatalogService(temp_session_factory)
    with pytest.raises(ProductValidationError):
        await catalog.create_product(**fields)


@pytest.mark.anyio
async def test_update_and_delete_product(temp_session_factory) -> None:
    catalog = CatalogService(temp_session_factory)
    product = await catalog.create_product(name="Plain", price=3, color="white")

    updated = await catalog.update_product(product.id, price=4.5, stock_count=0, color="black")
    assert updated is not None
    assert updated.price == 4.5
    assert updated.color == "black"
    assert updated.in_stock is False

    assert await catalog.update_product(9999, price=1) is None

    deleted = await catalog.delete_product(product.id)
    assert deleted is not None
    assert await catalog.get_product(product.id) is None
    assert await catalog.delete_product(product.id) is None


def test_color_enum_matches_storefront_palette() -> None:
    assert COLORS == (
        "red",
        "blue",
        "green",
        "yellow",
        "orange",
        "purple",
        "pink",
        "white",
        "black",
        "multicolor",
    )
