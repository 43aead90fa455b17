import pytest


@pytest.fixture(scope="session")
def _ordering_domain():
    from ordering.domain import ordering

    return ordering


@pytest.fixture(autouse=True)
def run_around_tests(_ordering_domain):
    """Push domain context before each test, cleanup after."""
    ctx = _ordering_domain.domain_context()
    ctx.push()

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    ctx.pop()


@pytest.fixture()
def address():
    return {
        "full_name": "Ana Lima",
        "street": "Rua Augusta 10",
        "city": "Lisbon",
        "zip_code": "1100-053",
        "country": "PT",
    }


def make_line(product_id, seller_id, price, quantity=1, options=("shipping",), mode="secure", shipping_cost=0.0):
    """Cart line snapshot, as the catalogue hands it to checkout."""
    return {
        "product_id": product_id,
        "name": f"Product {product_id}",
        "price": price,
        "quantity": quantity,
        "seller_id": seller_id,
        "seller_name": f"Seller {seller_id}",
        "image_url": None,
        "selling_mode": mode,
        "delivery_options": list(options),
        "shipping_cost": shipping_cost,
    }


@pytest.fixture()
def cart_line():
    return make_line
