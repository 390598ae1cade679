# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Tests for MappingExecutor — rule application, recursion and policies."""

from __future__ import annotations

import copy
from collections.abc import Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import BaseModel

from flymap.kernel.exceptions import (
    MappingDepthExceededError,
    MappingNotFoundError,
    SourceMemberMissingError,
    TypeMismatchError,
    UnresolvedMemberError,
)
from flymap.mapping.executor import MappingExecutor
from flymap.mapping.profile import MappingProfile
from flymap.mapping.registry import MappingRegistry
from flymap.mapping.rules import Computed

# ---------------------------------------------------------------------------
# Test types
# ---------------------------------------------------------------------------


@dataclass
class Person:
    first_name: str
    last_name: str
    street: str = ""
    city: str = ""
    created_at: datetime | None = None


@dataclass
class PersonView:
    full_name: str
    address_line: str
    member_since: str


@dataclass
class CreateRequest:
    first_name: str
    last_name: str
    email: str


@dataclass
class Address:
    street: str
    city: str


@dataclass
class AddressView:
    street: str
    city: str


@dataclass
class OrderLine:
    sku: str
    quantity: int


@dataclass
class OrderLineView:
    sku: str
    quantity: int


@dataclass
class Order:
    number: str
    address: Address
    lines: list[OrderLine]
    billing: Address | None = None
    total: Decimal = Decimal("0")


@dataclass
class OrderView:
    number: str
    address: AddressView
    lines: list[OrderLineView]
    billing: AddressView | None = None
    line_count: int = 0


@dataclass
class OrderSummary:
    number: str
    lines: tuple[OrderLineView, ...] = ()
    total: str = ""


@dataclass
class Node:
    value: int
    child: Node | None = None


@dataclass
class NodeView:
    value: int
    child: NodeView | None = None


class AccountModel(BaseModel):
    first_name: str
    last_name: str
    city: str | None = None


class PlainContact:
    full_name: str
    city: str
    note: str = "n/a"


def format_month_year(moment: datetime) -> str:
    return moment.strftime("%B %Y")


class UserProfile(MappingProfile):
    def configure(self) -> None:
        self.create_map(Person, PersonView).compute(
            "full_name", lambda p: f"{p.first_name} {p.last_name}"
        ).compute("address_line", lambda p: f"{p.street}, {p.city}").compute(
            "member_since", lambda p: format_month_year(p.created_at)
        )
        self.create_map(CreateRequest, Person).compute("created_at", lambda _: datetime.now(timezone.utc))
        self.create_map(Address, AddressView).derive_reverse()


class OrderProfile(MappingProfile):
    def configure(self) -> None:
        self.create_map(Address, AddressView)
        self.create_map(OrderLine, OrderLineView)
        self.create_map(Order, OrderView).delegate("lines", OrderLineView).compute(
            "line_count", lambda o: len(o.lines)
        )
        self.create_map(Order, OrderSummary).delegate("lines", OrderLineView)


def make_executor(*profiles: MappingProfile | type[MappingProfile], **kwargs: object) -> MappingExecutor:
    registry = MappingRegistry()
    for profile in profiles:
        registry.register_profile(profile)
    registry.seal()
    return MappingExecutor(registry, **kwargs)  # type: ignore[arg-type]


def make_order() -> Order:
    return Order(
        number="A-1",
        address=Address("1 A St", "X"),
        lines=[OrderLine("apple", 3), OrderLine("pear", 1), OrderLine("fig", 7)],
    )


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


class TestUserScenarios:
    def test_person_to_view_uses_computed_rules(self) -> None:
        executor = make_executor(UserProfile)
        person = Person("John", "Doe", "123 Main St", "Anytown", datetime(2023, 5, 1))

        view = executor.map(person, PersonView)

        assert view == PersonView(full_name="John Doe", address_line="123 Main St, Anytown", member_since="May 2023")

    def test_address_round_trip_through_derived_reverse(self) -> None:
        executor = make_executor(UserProfile)
        address = Address("1 A St", "X")

        view = executor.map(address, AddressView)
        back = executor.map(view, Address)

        assert view == AddressView("1 A St", "X")
        assert back == address
        assert back is not address

    def test_create_request_gets_creation_time(self) -> None:
        executor = make_executor(UserProfile)
        before = datetime.now(timezone.utc)

        person = executor.map(CreateRequest("Jane", "Roe", "jane@example.com"), Person)

        assert person.first_name == "Jane"
        assert person.last_name == "Roe"
        assert person.created_at is not None
        assert person.created_at >= before
        # street / city have no source and keep their defaults
        assert person.street == ""
        assert person.city == ""


class TestNestedAndCollections:
    def test_collection_preserves_order_and_length(self) -> None:
        executor = make_executor(OrderProfile)
        order = make_order()

        view = executor.map(order, OrderView)

        assert len(view.lines) == len(order.lines)
        assert [line.sku for line in view.lines] == ["apple", "pear", "fig"]
        assert all(isinstance(line, OrderLineView) for line in view.lines)
        assert view.line_count == 3

    def test_nested_member_delegation_is_inferred(self) -> None:
        executor = make_executor(OrderProfile)

        view = executor.map(make_order(), OrderView)

        assert view.address == AddressView("1 A St", "X")

    def test_none_nested_value_stays_none(self) -> None:
        executor = make_executor(OrderProfile)

        view = executor.map(make_order(), OrderView)

        assert view.billing is None

    def test_none_under_delegate_does_not_invoke_nested_mapping(self) -> None:
        calls: list[object] = []

        class CountingProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Node, NodeView).delegate("child", NodeView).compute(
                    "value", lambda n: calls.append(n) or n.value
                )

        executor = make_executor(CountingProfile)

        view = executor.map(Node(1), NodeView)

        assert view == NodeView(1, None)
        assert len(calls) == 1

    def test_delegate_into_tuple_member(self) -> None:
        executor = make_executor(OrderProfile)

        summary = executor.map(make_order(), OrderSummary)

        assert isinstance(summary.lines, tuple)
        assert [line.quantity for line in summary.lines] == [3, 1, 7]

    def test_empty_collection(self) -> None:
        executor = make_executor(OrderProfile)
        order = Order(number="A-2", address=Address("s", "c"), lines=[])

        assert executor.map(order, OrderView).lines == []

    def test_recursive_structure(self) -> None:
        class TreeProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Node, NodeView).delegate("child", NodeView)

        executor = make_executor(TreeProfile)

        view = executor.map(Node(1, Node(2, Node(3))), NodeView)

        assert view == NodeView(1, NodeView(2, NodeView(3)))


class TestPurity:
    def test_source_is_not_mutated(self) -> None:
        executor = make_executor(OrderProfile)
        order = make_order()
        snapshot = copy.deepcopy(order)

        executor.map(order, OrderView)

        assert order == snapshot

    def test_copied_collections_are_fresh(self) -> None:
        @dataclass
        class Basket:
            items: list[str] = field(default_factory=list)

        class BasketProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Basket, Basket)

        executor = make_executor(BasketProfile)
        basket = Basket(["a", "b"])

        copied = executor.map(basket, Basket)

        assert copied.items == ["a", "b"]
        assert copied.items is not basket.items

    def test_generator_member_is_read_once(self) -> None:
        @dataclass
        class Readings:
            values: Iterator[int]

        @dataclass
        class ReadingsView:
            values: list[int]

        class ReadingsProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Readings, ReadingsView)

        executor = make_executor(ReadingsProfile)

        view = executor.map(Readings(x for x in [1, 2, 3]), ReadingsView)

        assert view.values == [1, 2, 3]

    def test_generator_copied_into_tuple_member(self) -> None:
        @dataclass
        class Readings:
            samples: Iterator[int]

        @dataclass
        class Snapshot:
            values: tuple[int, ...]

        class SnapshotProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Readings, Snapshot).map_from("values", "samples")

        executor = make_executor(SnapshotProfile)

        snapshot = executor.map(Readings(iter([4, 5, 6])), Snapshot)

        assert snapshot.values == (4, 5, 6)


class TestExplicitCopyRules:
    def test_copy_renamed_member(self) -> None:
        class RenameProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Address, AddressView).map_from("street", "city").map_from("city", "street")

        executor = make_executor(RenameProfile)

        assert executor.map(Address("s", "c"), AddressView) == AddressView("c", "s")

    def test_missing_source_member(self) -> None:
        class BrokenProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Address, AddressView).map_from("city", "town")

        executor = make_executor(BrokenProfile)

        with pytest.raises(SourceMemberMissingError) as exc_info:
            executor.map(Address("s", "c"), AddressView)
        assert exc_info.value.context["source_member"] == "town"

    def test_type_mismatch_without_conversion(self) -> None:
        class MismatchProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Order, OrderSummary).map_from("total", "total").ignore("lines")

        executor = make_executor(MismatchProfile)

        with pytest.raises(TypeMismatchError) as exc_info:
            executor.map(make_order(), OrderSummary)
        assert exc_info.value.context["member"] == "total"

    def test_registered_conversion_is_applied(self) -> None:
        class ConvertingProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Order, OrderSummary).map_from("total", "total").ignore("lines")

        registry = MappingRegistry()
        registry.register_conversion(Decimal, str, lambda d: f"{d:.2f}")
        registry.register_profile(ConvertingProfile)
        registry.seal()
        order = make_order()
        order.total = Decimal("12.5")

        summary = MappingExecutor(registry).map(order, OrderSummary)

        assert summary.total == "12.50"
        assert summary.lines == ()

    def test_computed_errors_propagate(self) -> None:
        class FailingProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Address, AddressView).compute("city", lambda a: 1 / 0)

        executor = make_executor(FailingProfile)

        with pytest.raises(ZeroDivisionError):
            executor.map(Address("s", "c"), AddressView)


class TestUnresolvedMembers:
    def test_permissive_mode_leaves_default(self) -> None:
        class PartialProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Node, Person)

        executor = make_executor(PartialProfile)

        person = executor.map(Node(5), Person)

        # members without default become None, members with defaults keep them
        assert person.first_name is None
        assert person.street == ""

    def test_strict_mode_raises(self) -> None:
        class PartialProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(CreateRequest, Person)

        executor = make_executor(PartialProfile, strict=True)

        with pytest.raises(UnresolvedMemberError) as exc_info:
            executor.map(CreateRequest("a", "b", "c"), Person)
        assert exc_info.value.context["member"] == "street"

    def test_strict_mode_honours_ignore(self) -> None:
        class IgnoringProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(CreateRequest, Person).ignore("street").ignore("city").ignore("created_at")

        executor = make_executor(IgnoringProfile, strict=True)

        person = executor.map(CreateRequest("a", "b", "c"), Person)

        assert person == Person("a", "b")

    def test_incompatible_same_name_member_is_unresolved(self) -> None:
        class AddressOnlyProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Order, OrderView).ignore("lines")

        executor = make_executor(AddressOnlyProfile, strict=True)

        with pytest.raises(UnresolvedMemberError) as exc_info:
            executor.map(make_order(), OrderView)
        assert exc_info.value.context["member"] == "address"


class TestLookupAndLimits:
    def test_unregistered_pair(self) -> None:
        executor = make_executor(UserProfile)

        with pytest.raises(MappingNotFoundError):
            executor.map(make_order(), OrderView)

    def test_lookup_uses_runtime_type(self) -> None:
        @dataclass
        class SpecialAddress(Address):
            zone: str = "z"

        executor = make_executor(UserProfile)

        with pytest.raises(MappingNotFoundError):
            executor.map(SpecialAddress("s", "c"), AddressView)

    def test_max_depth(self) -> None:
        class TreeProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Node, NodeView).delegate("child", NodeView)

        executor = make_executor(TreeProfile, max_depth=1)

        assert executor.map(Node(1, Node(2)), NodeView) == NodeView(1, NodeView(2))
        with pytest.raises(MappingDepthExceededError):
            executor.map(Node(1, Node(2, Node(3))), NodeView)


class TestTargetShapes:
    def test_pydantic_target(self) -> None:
        class AccountProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Person, AccountModel)

        executor = make_executor(AccountProfile)

        account = executor.map(Person("Ada", "Lovelace", city="London"), AccountModel)

        assert account == AccountModel(first_name="Ada", last_name="Lovelace", city="London")

    def test_pydantic_target_rejecting_unresolved_member_in_permissive_mode(self) -> None:
        class BadgeModel(BaseModel):
            first_name: str
            code: str

        class BadgeProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Person, BadgeModel)

        executor = make_executor(BadgeProfile)

        with pytest.raises(UnresolvedMemberError) as exc_info:
            executor.map(Person("Ada", "Lovelace"), BadgeModel)
        assert exc_info.value.context["members"] == ["code"]
        assert exc_info.value.__cause__ is not None

    def test_pydantic_target_rejecting_computed_value(self) -> None:
        class BadgeModel(BaseModel):
            code: str

        class BadgeProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Person, BadgeModel).compute("code", lambda p: 42)

        executor = make_executor(BadgeProfile)

        with pytest.raises(TypeMismatchError) as exc_info:
            executor.map(Person("Ada", "Lovelace"), BadgeModel)
        assert "code" in exc_info.value.context["reason"]

    def test_plain_class_target(self) -> None:
        class ContactProfile(MappingProfile):
            def configure(self) -> None:
                self.create_map(Person, PlainContact).compute("full_name", lambda p: f"{p.first_name} {p.last_name}")

        executor = make_executor(ContactProfile)

        contact = executor.map(Person("Ada", "Lovelace", city="London"), PlainContact)

        assert isinstance(contact, PlainContact)
        assert contact.full_name == "Ada Lovelace"
        assert contact.city == "London"
        assert contact.note == "n/a"


class TestBatchAndConcurrency:
    def test_map_list(self) -> None:
        executor = make_executor(UserProfile)
        addresses = [Address(f"{i} Main St", "X") for i in range(5)]

        views = executor.map_list(addresses, AddressView)

        assert [v.street for v in views] == [a.street for a in addresses]

    def test_map_list_empty(self) -> None:
        assert make_executor(UserProfile).map_list([], AddressView) == []

    def test_concurrent_mapping(self) -> None:
        executor = make_executor(OrderProfile)
        orders = [
            Order(number=f"N-{i}", address=Address("s", "c"), lines=[OrderLine(str(j), j) for j in range(i % 7)])
            for i in range(200)
        ]

        with ThreadPoolExecutor(max_workers=8) as pool:
            views = list(pool.map(lambda o: executor.map(o, OrderView), orders))

        assert [v.number for v in views] == [o.number for o in orders]
        assert [v.line_count for v in views] == [len(o.lines) for o in orders]

    def test_executor_exposes_settings(self) -> None:
        executor = make_executor(UserProfile, strict=True)

        assert executor.strict is True
        assert executor.registry.is_sealed is True

    def test_registry_computed_rule_instance(self) -> None:
        executor = make_executor(UserProfile)

        rule = executor.registry.resolve(Person, PersonView).rule_for("full_name")

        assert isinstance(rule, Computed)
