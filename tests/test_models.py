"""Tests for the selectable enumerations on the domain models."""
from classifieds.domain.models import Continent, Gender, Theme


def test_continent_helpers():
    assert Continent.values() == ['AF', 'AN', 'AS', 'EU', 'NA', 'OC', 'SA']
    assert Continent.names()[-1] == 'SOUTH_AMERICA'
    assert Continent.find('NA') == {'id': 'NA', 'name': 'NORTH_AMERICA', 'label': 'North America'}
    assert Continent.find('XX') == {}
    assert Continent.find('') == {}


def test_all_is_keyed_by_value_and_sorted_by_label():
    continents = Continent.all()
    assert list(continents) == ['AF', 'AN', 'AS', 'EU', 'NA', 'OC', 'SA']
    assert list(Continent.all(order_by='label', reverse=True))[0] == 'SA'
    assert continents['EU']['label'] == 'Europe'


def test_gender_carries_a_title():
    assert Gender.find(1) == {'id': 1, 'name': 'MALE', 'label': 'Male', 'title': 'Mr'}
    assert Gender.find(2)['title'] == 'Mrs'
    assert Gender.find(3) == {}


def test_theme_choices():
    assert Theme.choices() == [('light', 'Light'), ('dark', 'Dark'), ('system', 'System')]
