from fastapi import status
from sqlalchemy.exc import OperationalError

from models import Product

SERVICE_KEY = "test-service-key"


def page_ids(response):
    return [experience["id"] for experience in response.json()["experiences"]]


def test_list_products_default_page(client, make_products):
    make_products(6)

    response = client.get("/api/products")
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert len(body["experiences"]) == 4
    assert body["hasMore"] is True
    assert len(set(page_ids(response))) == 4


def test_list_products_flat_display_shape(client, make_products):
    make_products(1)

    experience = client.get("/api/products").json()["experiences"][0]
    assert experience["uid"] == "experience-0"
    assert experience["title"] == "Experience 0"
    assert experience["description"] == "Description 0"
    assert experience["price"] == 10
    assert experience["currency"] == "€"
    assert experience["imageUrl"] == "/images/0.jpg"
    assert experience["images"] == ["/images/0.jpg"]
    assert experience["checkoutUrl"] == "https://checkout.example.com/0"
    assert experience["producerName"] == "Cantina Colli Alti"


def test_list_products_fills_body_defaults(client, db_session, producer):
    db_session.add(Product(uid="bare", title="Bare", producer_id=producer.id, body=None))
    db_session.commit()

    experience = client.get("/api/products").json()["experiences"][0]
    assert experience["description"] == ""
    assert experience["price"] == 0
    assert experience["currency"] == "€"
    assert experience["imageUrl"] == "/placeholder.jpg"
    assert experience["checkoutUrl"] == ""


def test_excluded_ids_never_returned(client, make_products):
    products = make_products(8)
    excluded = [p.id for p in products[:3]]

    response = client.get(
        "/api/products", params={"limit": 10, "exclude": ",".join(excluded)}
    )
    returned = page_ids(response)
    assert len(returned) == 5
    assert not set(returned) & set(excluded)
    assert response.json()["hasMore"] is False


def test_exclude_and_loaded_ids_are_merged(client, make_products):
    products = make_products(4)

    response = client.get(
        "/api/products",
        params={
            "limit": 4,
            "exclude": products[0].id,
            "loadedIds": f"{products[1].id}, ,{products[1].id}",
        },
    )
    returned = page_ids(response)
    assert sorted(returned) == sorted([products[2].id, products[3].id])


def test_paging_through_whole_catalogue(client, make_products):
    products = make_products(7)
    seen = []
    has_more = True
    while has_more:
        response = client.get(
            "/api/products", params={"limit": 3, "loadedIds": ",".join(seen)}
        )
        body = response.json()
        new_ids = page_ids(response)
        assert len(new_ids) <= 3
        assert not set(new_ids) & set(seen)
        seen.extend(new_ids)
        has_more = body["hasMore"]
        assert has_more == (len(seen) < len(products))
    assert sorted(seen) == sorted(p.id for p in products)


def test_rest_of_page_is_newest_first(client, make_products):
    products = make_products(5)

    response = client.get(
        "/api/products", params={"limit": 5, "p": products[0].uid}
    )
    returned = page_ids(response)
    assert returned[0] == products[0].id
    assert returned[1:] == [p.id for p in reversed(products[1:])]


def test_target_by_id_opens_page(client, make_products):
    products = make_products(5)

    response = client.get("/api/products", params={"limit": 2, "p": products[2].id})
    assert page_ids(response)[0] == products[2].id


def test_unknown_target_falls_back(client, make_products):
    make_products(3)

    response = client.get("/api/products", params={"limit": 3, "p": "missing"})
    assert response.status_code == status.HTTP_200_OK
    assert len(page_ids(response)) == 3


def test_excluded_target_is_not_repeated(client, make_products):
    products = make_products(3)

    response = client.get(
        "/api/products",
        params={"limit": 3, "p": products[1].uid, "loadedIds": products[1].id},
    )
    assert products[1].id not in page_ids(response)


def test_limit_one_returns_single_item(client, make_products):
    make_products(3)

    response = client.get("/api/products", params={"limit": 1})
    assert len(page_ids(response)) == 1
    assert response.json()["hasMore"] is True


def test_empty_catalogue(client):
    response = client.get("/api/products")
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"experiences": [], "hasMore": False}


def test_bogus_exclusions_do_not_hide_remaining_items(client, make_products):
    make_products(2)

    response = client.get(
        "/api/products", params={"limit": 1, "loadedIds": "ghost-1,ghost-2"}
    )
    assert len(page_ids(response)) == 1
    assert response.json()["hasMore"] is True


def test_invalid_limit_rejected(client):
    assert client.get("/api/products", params={"limit": 0}).status_code == 422
    assert client.get("/api/products", params={"limit": 500}).status_code == 422
    assert client.get("/api/products", params={"limit": "many"}).status_code == 422


def test_database_failure_is_500(client, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection lost"))

    monkeypatch.setattr("routers.products.fetch_experience_page", broken)
    response = client.get("/api/products")
    assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert response.json() == {"error": "Failed to fetch products"}


def test_missing_api_key_rejected(client, make_products):
    make_products(1)

    response = client.get("/api/products", headers={"apikey": "wrong"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert response.json() == {"error": "Invalid API key"}


def test_service_key_accepted_on_public_routes(client, make_products):
    make_products(1)

    response = client.get("/api/products", headers={"apikey": SERVICE_KEY})
    assert response.status_code == status.HTTP_200_OK


def test_get_product_by_uid(client, make_products):
    products = make_products(2)

    response = client.get(f"/api/products/{products[1].uid}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["id"] == products[1].id


def test_get_product_by_id(client, make_products):
    products = make_products(2)

    response = client.get(f"/api/products/{products[0].id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["uid"] == products[0].uid


def test_get_product_not_found(client):
    response = client.get("/api/products/nope")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json() == {"error": "Product not found"}


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["status"] == "healthy"


def test_malformed_body_does_not_break_the_feed(client, db_session, producer, make_products):
    products = make_products(3)
    db_session.add(Product(
        uid="odd",
        title="Odd",
        producer_id=producer.id,
        body={
            "price": "free",
            "currency": 1,
            "description": ["not", "text"],
            "imageUrl": 42,
            "images": ["/ok.jpg", None, 7],
            "checkoutUrl": {"href": "x"},
        },
    ))
    db_session.commit()

    response = client.get("/api/products", params={"limit": 10})
    assert response.status_code == status.HTTP_200_OK
    experiences = {e["uid"]: e for e in response.json()["experiences"]}
    assert len(experiences) == len(products) + 1
    odd = experiences["odd"]
    assert odd["price"] == 0
    assert odd["currency"] == "€"
    assert odd["description"] == ""
    assert odd["imageUrl"] == "/placeholder.jpg"
    assert odd["images"] == ["/ok.jpg"]
    assert odd["checkoutUrl"] == ""


def test_numeric_string_price_is_kept(client, db_session, producer):
    db_session.add(Product(uid="priced", title="Priced", producer_id=producer.id, body={"price": "12.5"}))
    db_session.commit()

    response = client.get("/api/products/priced")
    assert response.json()["price"] == 12.5


def test_serve_runs_uvicorn(monkeypatch):
    import main

    calls = []
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: calls.append((app, kwargs)))
    main.serve()
    assert calls[0][0] is main.app
    assert calls[0][1]["port"] == main.settings.PORT
