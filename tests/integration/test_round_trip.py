"""End-to-end mapping of an order graph to its DTO and back.

Critical Invariants:
- Mapping to the DTO and back reproduces the original graph
- Renames, enum flattening and base64 fields are symmetric
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Annotated

from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from graphmapper import MapField, Mapper, MapperConfig, map_class


class Status(IntEnum):
    NEW = 1
    PAID = 2
    SHIPPED = 3


@dataclass
class Customer:
    name: str = ""
    email: str | None = None


@dataclass
class LineItem:
    sku: str = ""
    quantity: int = 0
    unit_price: float = 0.0


@dataclass
class Order:
    number: int = 0
    status: Status = Status.NEW
    note: str | None = None
    signature: bytes = b""
    customer: Customer | None = None
    lines: list[LineItem] = field(default_factory=list)


@dataclass
class CustomerDto:
    name: str | None = None
    email: str | None = None


@dataclass
class LineItemDto:
    sku: str | None = None
    quantity: int = 0
    unit_price: float = 0.0


@map_class
@dataclass
class OrderDto:
    number: int = 0
    status: int = 0
    note: str | None = None
    signature: Annotated[str | None, MapField(binary=True)] = None
    customer: CustomerDto | None = None
    items: Annotated[list[LineItemDto], MapField(name="lines")] = field(default_factory=list)


line_items = st.builds(
    LineItem,
    sku=st.text(max_size=8),
    quantity=st.integers(min_value=0, max_value=1000),
    unit_price=st.floats(allow_nan=False, allow_infinity=False),
)

orders = st.builds(
    Order,
    number=st.integers(),
    status=st.sampled_from(Status),
    note=st.none() | st.text(max_size=20),
    signature=st.binary(max_size=32),
    customer=st.none() | st.builds(Customer, name=st.text(max_size=10), email=st.none() | st.text()),
    lines=st.lists(line_items, max_size=6),
)


def new_mapper(**overrides) -> Mapper:
    return Mapper(MapperConfig(_env_file=None, **overrides))


def test_known_order_maps_to_dto():
    order = Order(
        number=42,
        status=Status.PAID,
        signature=bytes([1, 2, 3, 4, 5]),
        customer=Customer(name="Ada", email="ada@example.com"),
        lines=[LineItem("a", 1, 2.5), LineItem("b", 2, 4.0)],
    )

    dto = new_mapper().map(OrderDto, order)

    assert dto.number == 42
    assert dto.status == 2
    assert dto.signature == "AQIDBAU="
    assert dto.customer == CustomerDto(name="Ada", email="ada@example.com")
    assert [(i.sku, i.quantity, i.unit_price) for i in dto.items] == [("a", 1, 2.5), ("b", 2, 4.0)]


@settings(max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(order=orders)
def test_round_trip(order):
    """PROPERTY: Order -> OrderDto -> Order is the identity."""
    mapper = new_mapper()
    dto = mapper.map(OrderDto, order)
    assert mapper.map(Order, dto) == order


@settings(max_examples=25, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(order=orders)
def test_round_trip_sequential_with_compiled_accessors(order):
    mapper = new_mapper(parallel_lists=False, use_compiled_accessors=True)
    assert mapper.map(Order, mapper.map(OrderDto, order)) == order
