from datetime import date

import pytest

from app.schemas.event_schema import EventCreate, EventUpdate
from app.services.menu_service import MenuService, menu_image_url, year_window


@pytest.fixture
def menus(db):
    return MenuService(db, image_base_url="/images")


def test_year_window_is_half_open():
    assert year_window(2021) == (date(2021, 1, 1), date(2022, 1, 1))


def test_menu_image_url():
    assert menu_image_url("menu.jpg") == "/images/menu.jpg"
    assert menu_image_url("menu.jpg", "https://cdn.example/img/") == "https://cdn.example/img/menu.jpg"
    assert menu_image_url("https://cdn.example/menu.jpg") == "https://cdn.example/menu.jpg"
    assert menu_image_url("/static/menu.jpg") == "/static/menu.jpg"


def test_menu_carries_aliases(menus, make_event):
    event = make_event(date(2021, 11, 25))
    menu = menus.get_menu_by_id(event.id)
    assert menu.title == event.event_name
    assert menu.description == event.event_description
    assert menu.location == event.event_location
    assert menu.date == event.event_date
    assert menu.year == 2021
    assert menu.menu_image_url == "/images/menu-2021.jpg"


def test_sort_orders_are_reverses(menus, make_event):
    make_event(date(2019, 11, 28))
    make_event(date(2021, 11, 25))
    make_event(date(2020, 11, 26))
    make_event(date(2020, 11, 26), menu_title="Second 2020")

    ascending = [menu.id for menu in menus.get_all_menus(sort="asc")]
    descending = [menu.id for menu in menus.get_all_menus(sort="desc")]
    assert ascending == list(reversed(descending))
    assert [menu.year for menu in menus.get_all_menus(sort="desc")] == [2021, 2020, 2020, 2019]


def test_year_filter_includes_only_that_year(menus, make_event):
    make_event(date(2020, 11, 26))
    make_event(date(2021, 1, 1))
    make_event(date(2021, 12, 31))
    make_event(date(2022, 1, 1))

    results = menus.get_menus_by_year(2021)
    assert [menu.event_date for menu in results] == [date(2021, 12, 31), date(2021, 1, 1)]


def test_limit_and_offset(menus, make_event):
    for year in (2018, 2019, 2020, 2021):
        make_event(date(year, 11, 25))

    assert [m.year for m in menus.get_all_menus(limit=2)] == [2021, 2020]
    assert [m.year for m in menus.get_all_menus(limit=2, offset=1)] == [2020, 2019]
    assert [m.year for m in menus.get_featured_menus(limit=1)] == [2021]


def test_stats_for_empty_archive(menus):
    stats = menus.get_menu_stats()
    assert stats.totalMenus == 0
    assert stats.years == []
    assert stats.mostRecentYear == 0
    assert stats.oldestYear == 0


def test_stats(menus, make_event):
    make_event(date(2020, 11, 26))
    make_event(date(2021, 11, 25))
    make_event(date(2021, 12, 24))

    stats = menus.get_menu_stats()
    assert stats.totalMenus == 3
    assert stats.years == [2021, 2020]
    assert stats.mostRecentYear == 2021
    assert stats.oldestYear == 2020


def test_create_update_delete(menus):
    created = menus.create_menu(EventCreate(
        event_name="Friendsgiving", event_type="Potluck", event_location="Loft",
        event_date=date(2023, 11, 23), event_description="Everyone brings a dish.",
        menu_title="Potluck 2023", menu_image_filename="potluck.jpg",
    ))
    assert created.id > 0

    updated = menus.update_menu(created.id, EventUpdate(menu_title="Potluck Feast", event_location=None))
    assert updated.menu_title == "Potluck Feast"
    assert updated.event_location == "Loft"

    assert menus.delete_menu(created.id) is True
    assert menus.get_menu_by_id(created.id) is None
    assert menus.delete_menu(created.id) is False
    assert menus.update_menu(created.id, EventUpdate(menu_title="Gone")) is None


def test_thanksgiving_example(menus, make_event):
    first = make_event(date(2020, 11, 26))
    make_event(date(2021, 11, 25))

    assert [menu.id for menu in menus.get_menus_by_year(2020)] == [first.id]
    assert [menu.year for menu in menus.get_all_menus(sort="desc")] == [2021, 2020]
