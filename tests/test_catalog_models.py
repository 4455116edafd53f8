from menu_bot.catalog.models import (
    UNTITLED,
    Catalog,
    Product,
    Store,
    parse_categories,
    parse_products,
)


def test_product_parses_embedded_category_and_image_alias() -> None:
    product = Product.from_payload(
        {
            "_id": "p1",
            "title": "Latte",
            "price": 3.5,
            "imageUrl": "https://img.example/latte.jpg",
            "category": {"_id": "c1", "name": "Coffee"},
            "isAvailable": False,
        }
    )

    assert product is not None
    assert product.id == "p1"
    assert product.price == "3.5"
    assert product.image == "https://img.example/latte.jpg"
    assert product.category_id == "c1"
    assert product.category_name == "Coffee"
    assert product.available is False


def test_product_missing_optional_fields_are_absent() -> None:
    product = Product.from_payload({"id": 7, "category": None, "unknown": {"nested": True}})

    assert product is not None
    assert product.id == "7"
    assert product.title == UNTITLED
    assert product.price == ""
    assert product.description == ""
    assert product.available is None
    assert product.image is None
    assert product.category_id is None


def test_parse_products_skips_non_objects_and_unwraps_envelopes() -> None:
    products = parse_products({"data": [{"_id": "a", "title": "A"}, "garbage", None]})

    assert products is not None
    assert [product.title for product in products] == ["A"]


def test_parse_returns_none_for_unusable_payloads() -> None:
    assert parse_products("oops") is None
    assert parse_categories({"message": "not found"}) is None


def test_store_reads_social_links() -> None:
    store = Store.from_payload(
        {
            "name": "YSG",
            "socialLinks": {"instagram": "https://instagram.com/ysg", "facebook": ""},
        }
    )

    assert store is not None
    assert store.social_links == {"instagram": "https://instagram.com/ysg"}
    assert store.address == ""


def test_store_payload_must_be_an_object() -> None:
    assert Store.from_payload(["not", "a", "store"]) is None


def test_catalog_completeness_ignores_categories() -> None:
    store = Store(id="s", name="S")
    assert Catalog.build(store, None, []).is_complete
    assert not Catalog.build(store, [], None).is_complete
    assert not Catalog.build(None, [], []).is_complete
