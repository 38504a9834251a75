# tests/test_search.py
"""
Tests for /search and /recommendations.
"""
from storefront.services.recommendation_service import complementary_notes, flatten_notes
from storefront.services.search_service import term_variants

API = "/api/v1"


def ids(products: list[dict]) -> set[int]:
    return {p["id"] for p in products}


class TestTermVariants:

    def test_three_variants_for_longer_terms(self):
        assert term_variants("Chanel") == ["chanel", "chane", "hanel"]

    def test_short_terms_are_used_as_typed(self):
        assert term_variants("ab") == ["ab"]

    def test_blank(self):
        assert term_variants("   ") == []


class TestSearch:

    def test_typo_in_brand_still_matches(self, client, make_product):
        hit = make_product(name="No. 5", brand="Chanel")
        make_product(name="Sauvage", brand="Dior")

        # "Chanell" minus its last char is "Chanel"
        response = client.get(f"{API}/search", params={"q": "Chanell"})

        assert response.status_code == 200
        assert ids(response.json()["products"]) == {hit.id}

    def test_query_matches_scent_notes(self, client, make_product):
        hit = make_product(scent_notes={"top": ["pink pepper"], "middle": ["iris"], "base": ["vetiver"]})
        make_product()

        response = client.get(f"{API}/search", params={"q": "vetiver"})

        assert ids(response.json()["products"]) == {hit.id}

    def test_inactive_products_are_excluded(self, client, make_product):
        make_product(name="Hidden Gem", is_active=False)
        response = client.get(f"{API}/search", params={"q": "Hidden"})
        assert response.json()["products"] == []

    def test_filters_and_price_sort(self, client, make_product):
        cheap = make_product(price=30.0, gender="women")
        pricey = make_product(price=90.0, gender="women")
        make_product(price=60.0, gender="men")
        make_product(price=500.0, gender="women")

        response = client.get(
            f"{API}/search",
            params={"gender": "women", "min_price": 20, "max_price": 100, "sort_by": "price-high"},
        )

        assert [p["id"] for p in response.json()["products"]] == [pricey.id, cheap.id]

    def test_gender_all_is_ignored(self, client, make_product):
        make_product(gender="men")
        make_product(gender="women")
        response = client.get(f"{API}/search", params={"gender": "all"})
        assert response.json()["pagination"]["total"] == 2

    def test_pagination(self, client, make_product):
        for _ in range(5):
            make_product()

        body = client.get(f"{API}/search", params={"limit": 2, "offset": 2}).json()

        assert len(body["products"]) == 2
        assert body["pagination"] == {"total": 5, "limit": 2, "offset": 2, "has_more": True}

    def test_suggestions_and_filters(self, client, make_product):
        make_product(brand="Floris", concentration="Eau de Toilette")
        make_product(brand="Dior", concentration="Parfum")

        body = client.get(f"{API}/search", params={"q": "flor"}).json()

        assert {"type": "brand", "text": "Floris"} in body["suggestions"]
        assert {"type": "note", "text": "Floral"} in body["suggestions"]
        assert body["filters"]["brands"] == ["Dior", "Floris"]
        assert body["filters"]["genders"] == ["men", "women", "unisex"]

    def test_cache_header(self, client):
        response = client.get(f"{API}/search")
        assert response.headers["cache-control"] == "public, s-maxage=60, stale-while-revalidate=300"

    def test_unknown_sort_is_rejected(self, client):
        assert client.get(f"{API}/search", params={"sort_by": "cheapest"}).status_code == 400


class TestNoteHelpers:

    def test_flatten_notes(self):
        notes = {"top": ["Bergamot"], "middle": ["Rose", "Jasmine"], "base": ["Musk"]}
        assert flatten_notes(notes) == ["Bergamot", "Rose", "Jasmine", "Musk"]
        assert flatten_notes(None) == []

    def test_complementary_notes_match_by_substring(self):
        pairs = complementary_notes(["sicilian bergamot"])
        assert pairs[:3] == ["vanilla", "sandalwood", "amber"]


class TestRecommendations:

    def test_cart_recommendations_exclude_cart(self, client, make_product):
        in_cart = make_product(scent_notes={"top": ["bergamot"], "middle": [], "base": []})
        pair = make_product(scent_notes={"top": [], "middle": [], "base": ["vanilla"]})

        body = client.get(f"{API}/recommendations/cart", params={"product_ids": str(in_cart.id)}).json()

        returned = ids(body["products"])
        assert pair.id in returned
        assert in_cart.id not in returned

    def test_cart_recommendations_top_up_with_random(self, client, make_product):
        in_cart = make_product(scent_notes={"top": ["bergamot"], "middle": [], "base": []})
        others = [make_product(scent_notes={"top": ["oud"], "middle": [], "base": []}) for _ in range(3)]

        body = client.get(f"{API}/recommendations/cart", params={"product_ids": str(in_cart.id)}).json()

        assert ids(body["products"]) == {p.id for p in others}

    def test_bad_product_ids(self, client):
        response = client.get(f"{API}/recommendations/cart", params={"product_ids": "1,abc"})
        assert response.status_code == 400

    def test_trending(self, client, make_product):
        hot = make_product(is_trending=True)
        make_product()
        make_product(is_trending=True, is_active=False)

        body = client.get(f"{API}/recommendations/trending").json()

        assert ids(body["products"]) == {hot.id}

    def test_unknown_season(self, client):
        assert client.get(f"{API}/recommendations/season/monsoon").status_code == 400

    def test_unknown_mood_falls_back_to_fresh(self, client, make_product):
        fresh = make_product(scent_notes={"top": ["mint"], "middle": [], "base": []})
        make_product(scent_notes={"top": ["oud"], "middle": [], "base": []})

        body = client.get(f"{API}/recommendations/mood/grumpy").json()

        assert ids(body["products"]) == {fresh.id}

    def test_occasion_requires_concentration(self, client, make_product):
        edt = make_product(concentration="Eau de Toilette", scent_notes={"top": ["citrus"], "middle": [], "base": []})
        make_product(concentration="Parfum", scent_notes={"top": ["citrus"], "middle": [], "base": []})

        body = client.get(f"{API}/recommendations/occasion/office").json()

        assert ids(body["products"]) == {edt.id}

    def test_similar(self, client, make_product):
        product = make_product(scent_notes={"top": ["rose"], "middle": [], "base": []})
        twin = make_product(scent_notes={"top": [], "middle": ["Damask Rose"], "base": []})
        make_product(scent_notes={"top": ["leather"], "middle": [], "base": []})

        body = client.get(f"{API}/recommendations/similar/{product.id}").json()

        assert ids(body["products"]) == {twin.id}

    def test_similar_unknown_product(self, client):
        assert client.get(f"{API}/recommendations/similar/999").status_code == 404
