"""Unit tests for action_mapper module."""
from __future__ import annotations

import pytest

from action_mapper import (
    DEFAULT_RULES,
    ActionMapper,
    MappingRule,
    extract_url,
    map_step,
    resolve_click_target,
)
from exceptions import MappingError
from test_types import Click, FillField, Navigate, ReadPage, SelectOption


class TestNavigate:
    """Tests for navigation steps."""

    def test_url_literal_wins(self):
        actions = map_step("Navigate to https://example.test/login", {})
        assert actions == [Navigate(url="https://example.test/login")]

    def test_url_literal_ignores_test_data(self):
        actions = map_step(
            "Navigate to the ParaBank login page at 'https://example.test/parabank/index.htm'",
            {"baseUrl": "https://other.test", "url": "https://third.test"},
        )
        assert actions == [Navigate(url="https://example.test/parabank/index.htm")]

    def test_trailing_punctuation_stripped(self):
        assert extract_url("Navigate to https://example.test/login.") == "https://example.test/login"

    def test_falls_back_to_base_url(self):
        actions = map_step("Navigate to the home page", {"baseUrl": "https://example.test"})
        assert actions == [Navigate(url="https://example.test")]

    def test_falls_back_to_url_key(self):
        actions = map_step("Navigate to the home page", {"url": "https://example.test/home"})
        assert actions == [Navigate(url="https://example.test/home")]

    def test_named_page_uses_its_url_key(self):
        data = {"baseUrl": "https://example.test", "loginUrl": "https://example.test/index.htm"}
        assert map_step("Navigate to the login page", data) == [Navigate(url="https://example.test/index.htm")]

    def test_named_page_without_key_falls_back_to_base_url(self):
        actions = map_step("Navigate to the accounts overview", {"baseUrl": "https://example.test"})
        assert actions == [Navigate(url="https://example.test")]

    def test_no_url_anywhere_fails(self):
        with pytest.raises(MappingError) as exc_info:
            map_step("Navigate to the home page", {}, case_name="Home")
        assert exc_info.value.test_case == "Home"


class TestFillCredentials:
    """Tests for credential entry steps."""

    def test_username(self):
        actions = map_step("Enter the valid username 'john'", {"username": "john"})
        assert actions == [FillField(field_kind="username", value="john")]

    def test_value_comes_from_test_data_not_step(self):
        actions = map_step("Enter the invalid password 'nope'", {"password": "secret"})
        assert actions == [FillField(field_kind="password", value="secret")]

    def test_username_and_password_in_one_step(self):
        actions = map_step(
            "Enter username and password",
            {"username": "john", "password": "demo"},
        )
        assert actions == [
            FillField(field_kind="username", value="john"),
            FillField(field_kind="password", value="demo"),
        ]

    def test_missing_username_names_case(self):
        with pytest.raises(MappingError) as exc_info:
            map_step("Enter the valid username 'x'", {}, case_name="Login happy path")
        message = str(exc_info.value)
        assert "username" in message
        assert "Login happy path" in message
        assert exc_info.value.missing_key == "username"

    def test_missing_password(self):
        with pytest.raises(MappingError) as exc_info:
            map_step("Enter the password", {"username": "john"}, case_name="c")
        assert exc_info.value.missing_key == "password"

    def test_blank_value_counts_as_missing(self):
        with pytest.raises(MappingError):
            map_step("Enter the username", {"username": "  "})


class TestClick:
    """Tests for click steps."""

    @pytest.mark.parametrize("step", [
        "Click the Log In button",
        "Click the login button",
        "click on LOG IN",
    ])
    def test_login_button(self, step: str):
        assert map_step(step) == [Click(target_kind="login-button")]

    def test_open_account(self):
        assert map_step("Click the Open New Account link") == [Click(target_kind="open-account-button")]

    def test_submit(self):
        assert map_step("Click Submit") == [Click(target_kind="submit-button")]

    def test_quoted_label_kept_verbatim(self):
        assert resolve_click_target("Click on 'Transfer Funds'") == "Transfer Funds"

    def test_apostrophe_in_word_is_not_a_quote(self):
        assert resolve_click_target("Click on John's 'Transfer' button") == "Transfer"

    def test_button_phrase(self):
        assert resolve_click_target("Click the Bill Pay button") == "Bill Pay"

    def test_no_target_fails(self):
        with pytest.raises(MappingError):
            map_step("Click it", case_name="Vague")


class TestSelect:
    """Tests for dropdown steps."""

    def test_account_type_from_test_data_upper_cased(self):
        actions = map_step("Select the account type", {"accountType": "savings"})
        assert actions == [SelectOption(dropdown_kind="account-type", value="SAVINGS")]

    def test_account_type_inferred_from_step(self):
        assert map_step("Select CHECKING as the account type") == [
            SelectOption(dropdown_kind="account-type", value="CHECKING")
        ]

    def test_account_type_not_inferable(self):
        with pytest.raises(MappingError) as exc_info:
            map_step("Select the account type", {})
        assert exc_info.value.missing_key == "accountType"

    def test_source_account(self):
        actions = map_step("Select the source account", {"sourceAccount": "13344"})
        assert actions == [SelectOption(dropdown_kind="source-account", value="13344")]

    def test_source_account_missing(self):
        with pytest.raises(MappingError):
            map_step("Select the source account", {})


class TestObservation:
    """Tests for verify steps and the fallback."""

    def test_verify_reads_page(self):
        assert map_step("Verify that the welcome message is displayed (EXPECT: SUCCESS)") == [ReadPage()]

    def test_check_reads_page(self):
        assert map_step("Check the accounts overview table") == [ReadPage()]

    def test_unrecognized_step_falls_back_to_read(self):
        mapper = ActionMapper()
        assert mapper.match("Wait for the page to settle") is None
        assert mapper.map("Wait for the page to settle") == [ReadPage()]


class TestActionMapper:
    """Tests for rule ordering and determinism."""

    def test_first_matching_rule_wins(self):
        # "navigate to" beats "click" when both appear
        actions = map_step("Navigate to https://example.test and click login")
        assert actions == [Navigate(url="https://example.test")]

    def test_mapping_is_deterministic(self):
        mapper = ActionMapper()
        data = {"username": "john", "password": "demo"}
        first = mapper.map("Enter username and password", data)
        second = mapper.map("Enter username and password", data)
        assert first == second
        assert first is not second

    def test_test_data_not_mutated(self):
        data = {"accountType": "savings"}
        map_step("Select the account type", data)
        assert data == {"accountType": "savings"}

    def test_custom_rule_table(self):
        rule = MappingRule("logout", lambda text: "log out" in text, lambda s, d, c: [Click(target_kind="logout-link")])
        mapper = ActionMapper(rules=(rule,) + tuple(DEFAULT_RULES))
        assert mapper.map("Log out of the application") == [Click(target_kind="logout-link")]
        assert mapper.match("Log out now").name == "logout"
