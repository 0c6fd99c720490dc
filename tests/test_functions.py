"""Tests for the built-in function library and its French aliases."""

from __future__ import annotations

import datetime
import random
from typing import Any

import pytest

from gridcalc import Sheet, compute_cell
from gridcalc.formulas import canonical_name, function_names


# ────────────────────────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────────────────────────


def _calc(formula: str, cells: list[list[str]] | None = None, **kwargs: Any) -> str:
    """Display value of *formula* placed in column A below *cells*."""
    grid = [list(row) for row in cells or []] + [[formula]]
    return compute_cell(grid, len(grid) - 1, 0, **kwargs)


_FIXED_NOW = datetime.datetime(2024, 3, 15, 9, 30, 5)


# ────────────────────────────────────────────────────────────────
# Aggregates
# ────────────────────────────────────────────────────────────────


class TestAggregates:
    def test_sum(self) -> None:
        assert _calc("=SUM(1,2,3)") == "6"
        assert _calc("=SUM(A1:C1)", [["1", "x", ""]]) == "1"
        assert _calc("=SUM(A1:B1, 10)", [["1", "2"]]) == "13"

    def test_sum_of_nothing(self) -> None:
        assert _calc("=SUM()") == "0"

    def test_semicolon_separator(self) -> None:
        assert _calc("=SUM(1;2;3)") == "6"

    def test_average(self) -> None:
        assert _calc("=AVERAGE(A1:C1)", [["2", "4", ""]]) == "3"
        assert _calc("=MOYENNE(2,4)") == "3"

    def test_average_of_nothing(self) -> None:
        assert _calc("=AVERAGE()") == "#DIV/0!"
        assert _calc("=AVERAGE(A1:B1)", [["a", ""]]) == "#DIV/0!"

    def test_min_max(self) -> None:
        assert _calc("=MIN(3,1,2)") == "1"
        assert _calc("=MAX(1,5,3)") == "5"
        assert _calc("=MAX(A1:B1)", [["-2", "-7"]]) == "-2"

    def test_min_max_of_nothing(self) -> None:
        assert _calc("=MIN()") == "0"
        assert _calc("=MAX(A1:B1)", [["a", "b"]]) == "0"

    def test_count_and_counta(self) -> None:
        cells = [["1", "a", "", "2"]]
        assert _calc("=COUNT(A1:D1)", cells) == "2"
        assert _calc("=COUNTA(A1:D1)", cells) == "3"

    def test_product(self) -> None:
        assert _calc("=PRODUCT(2,3,4)") == "24"
        assert _calc("=PRODUIT(A1:B1)", [["5", "6"]]) == "30"


# ────────────────────────────────────────────────────────────────
# Scalar math
# ────────────────────────────────────────────────────────────────


class TestMath:
    def test_abs_sign(self) -> None:
        assert _calc("=ABS(-3)") == "3"
        assert _calc("=SIGN(-3)") == "-1"
        assert _calc("=SIGN(0)") == "0"

    def test_sqrt(self) -> None:
        assert _calc("=SQRT(16)") == "4"
        assert _calc("=RACINE(9)") == "3"
        assert _calc("=SQRT(-1)") == "#NUM!"

    def test_power(self) -> None:
        assert _calc("=POWER(2,10)") == "1024"
        assert _calc("=PUISSANCE(3,2)") == "9"

    def test_mod(self) -> None:
        assert _calc("=MOD(7,3)") == "1"
        assert _calc("=MOD(-7,3)") == "-1"
        assert _calc("=MOD(1,0)") == "#DIV/0!"

    def test_int_floors(self) -> None:
        assert _calc("=INT(2.7)") == "2"
        assert _calc("=INT(-2.5)") == "-3"
        assert _calc("=ENT(9.99)") == "9"

    def test_round_half_up(self) -> None:
        assert _calc("=ROUND(2.5)") == "3"
        assert _calc("=ROUND(-2.5)") == "-2"
        assert _calc("=ROUND(1.25,1)") == "1.3"
        assert _calc("=ARRONDI(3.14159,2)") == "3.14"

    def test_round_negative_digits(self) -> None:
        assert _calc("=ROUND(1234,-2)") == "1200"

    def test_roundup_rounddown(self) -> None:
        assert _calc("=ROUNDUP(1.21,1)") == "1.3"
        assert _calc("=ROUNDDOWN(1.29,1)") == "1.2"

    def test_ceiling_floor(self) -> None:
        assert _calc("=CEILING(4.2)") == "5"
        assert _calc("=CEILING(7,5)") == "10"
        assert _calc("=FLOOR(7,5)") == "5"
        assert _calc("=PLAFOND(4.2)") == "5"
        assert _calc("=PLANCHER(4.8)") == "4"

    def test_ceiling_zero_significance(self) -> None:
        assert _calc("=CEILING(1,0)") == "#DIV/0!"

    def test_logarithms(self) -> None:
        assert _calc("=LOG(100)") == "2"
        assert _calc("=LOG(8,2)") == "3"
        assert _calc("=LN(1)") == "0"
        assert _calc("=EXP(0)") == "1"

    def test_logarithm_domain(self) -> None:
        assert _calc("=LOG(0)") == "#NUM!"
        assert _calc("=LOG(5,1)") == "#DIV/0!"
        assert _calc("=EXP(1000)") == "#NUM!"

    def test_pi(self) -> None:
        assert _calc("=PI()") == "3.1415926536"

    def test_missing_argument_reads_blank(self) -> None:
        assert _calc("=ABS()") == "0"

    def test_too_many_arguments(self) -> None:
        assert _calc("=ABS(1,2)") == "#ERROR!"
        assert _calc("=PI(1)") == "#ERROR!"


class TestRandom:
    def test_rand_uses_sheet_rng(self) -> None:
        sheet = Sheet([["=RAND()"]], rng=random.Random(1))
        assert sheet.evaluate_cell(0, 0) == random.Random(1).random()

    def test_rand_range(self) -> None:
        sheet = Sheet([["=RAND()"]])
        for _ in range(20):
            assert 0.0 <= sheet.evaluate_cell(0, 0) < 1.0

    def test_randbetween_integral(self) -> None:
        sheet = Sheet([["=RANDBETWEEN(1,6)"]], rng=random.Random(7))
        for _ in range(50):
            value = sheet.evaluate_cell(0, 0)
            assert value.is_integer()
            assert 1.0 <= value <= 6.0


# ────────────────────────────────────────────────────────────────
# Statistics
# ────────────────────────────────────────────────────────────────


class TestStats:
    def test_median(self) -> None:
        assert _calc("=MEDIAN(3,1,2)") == "2"
        assert _calc("=MEDIAN(1,2,3,4)") == "2.5"
        assert _calc("=MEDIANE(5)") == "5"

    def test_median_of_nothing(self) -> None:
        assert _calc("=MEDIAN()") == "0"

    def test_stdev_is_sample(self) -> None:
        assert _calc("=STDEV(2,4,4,4,5,5,7,9)") == "2.1380899353"

    def test_stdev_needs_two_values(self) -> None:
        assert _calc("=STDEV(1)") == "#DIV/0!"


# ────────────────────────────────────────────────────────────────
# Logical
# ────────────────────────────────────────────────────────────────


class TestLogical:
    def test_if_branches(self) -> None:
        assert _calc('=IF(1,"yes","no")') == "yes"
        assert _calc('=IF(0,"yes","no")') == "no"
        assert _calc('=SI(2>1,"a","b")') == "a"

    def test_if_missing_branches(self) -> None:
        assert _calc("=IF(1)") == "1"
        assert _calc('=IF(0,"a")') == "0"

    def test_if_evaluates_both_branches(self) -> None:
        assert _calc('=IF(1,"a",1/0)') == "#DIV/0!"
        assert _calc("=IF(0,FOO(),2)") == "#NAME? (FOO)"

    def test_if_self_reference_in_unchosen_branch(self) -> None:
        assert compute_cell([["=IF(1,2,A1)"]], 0, 0) == "#CIRC!"

    def test_if_range_branch_sums(self) -> None:
        assert _calc("=IF(1,A1:B1,0)", [["2", "3"]]) == "5"


    def test_if_blank_condition_is_false(self) -> None:
        assert _calc("=IF(A1,1,2)", [[""]]) == "2"

    def test_if_text_condition(self) -> None:
        assert _calc('=IF("abc",1,2)') == "#VALUE!"

    def test_iferror(self) -> None:
        assert _calc('=IFERROR(1/0,"bad")') == "bad"
        assert _calc('=IFERROR(5,"bad")') == "5"
        assert _calc('=IFERROR(FOO(),"x")') == "x"
        assert _calc("=IFERROR(1/0)") == ""

    def test_iferror_does_not_catch_cycles(self) -> None:
        assert compute_cell([["=IFERROR(A1,0)"]], 0, 0) == "#CIRC!"

    def test_and_or_not(self) -> None:
        assert _calc("=AND(1,1)") == "1"
        assert _calc("=AND(1,0)") == "0"
        assert _calc("=OR(0,0)") == "0"
        assert _calc("=OR(0,1)") == "1"
        assert _calc("=NOT(0)") == "1"

    def test_logical_aliases(self) -> None:
        assert _calc("=ET(1,1)") == "1"
        assert _calc("=OU(0,0)") == "0"
        assert _calc("=NON(1)") == "0"

    def test_and_over_range(self) -> None:
        assert _calc("=AND(A1:B1)", [["1", "0"]]) == "0"
        assert _calc("=OR(A1:B1)", [["1", "0"]]) == "1"


# ────────────────────────────────────────────────────────────────
# Conditional aggregates
# ────────────────────────────────────────────────────────────────


_FRUIT = [
    ["5", "1"],
    ["10", "2"],
    ["apple", "3"],
    ["Apricot", "4"],
]


class TestCriteriaFunctions:
    def test_countif_numeric(self) -> None:
        assert _calc('=COUNTIF(A1:A4,">5")', _FRUIT) == "1"
        assert _calc('=COUNTIF(A1:A4,">=5")', _FRUIT) == "2"

    def test_countif_wildcard(self) -> None:
        assert _calc('=COUNTIF(A1:A4,"ap*")', _FRUIT) == "2"

    def test_countif_text_case_insensitive(self) -> None:
        assert _calc('=COUNTIF(A1:A4,"APPLE")', _FRUIT) == "1"

    def test_countif_not_equal_text(self) -> None:
        assert _calc('=COUNTIF(A1:A4,"<>apple")', _FRUIT) == "3"

    def test_sumif_with_target(self) -> None:
        assert _calc('=SUMIF(A1:A4,">=5",B1:B4)', _FRUIT) == "3"

    def test_sumif_without_target(self) -> None:
        assert _calc('=SUMIF(A1:A4,">5")', _FRUIT) == "10"

    def test_sumif_short_target(self) -> None:
        assert _calc('=SUMIF(A1:A4,"ap*",B1:B3)', _FRUIT) == "3"

    def test_averageif(self) -> None:
        assert _calc('=AVERAGEIF(A1:A4,"ap*",B1:B4)', _FRUIT) == "3.5"

    def test_averageif_no_match(self) -> None:
        assert _calc('=AVERAGEIF(A1:A4,">100")', _FRUIT) == "#DIV/0!"

    def test_french_aliases(self) -> None:
        assert _calc('=NB.SI(A1:A4,">5")', _FRUIT) == "1"
        assert _calc('=SOMME.SI(A1:A4,">=5",B1:B4)', _FRUIT) == "3"
        assert _calc('=MOYENNE.SI(A1:A4,"ap*",B1:B4)', _FRUIT) == "3.5"


# ────────────────────────────────────────────────────────────────
# Text
# ────────────────────────────────────────────────────────────────


class TestText:
    def test_len(self) -> None:
        assert _calc('=LEN("hello")') == "5"
        assert _calc("=LEN(12.5)") == "4"

    def test_left_right(self) -> None:
        assert _calc('=LEFT("hello",2)') == "he"
        assert _calc('=LEFT("hello")') == "h"
        assert _calc('=RIGHT("hello",3)') == "llo"
        assert _calc('=RIGHT("hello",0)') == ""

    def test_mid(self) -> None:
        assert _calc('=MID("hello",2,3)') == "ell"
        assert _calc('=MID("hello",4,10)') == "lo"

    def test_invalid_positions(self) -> None:
        assert _calc('=MID("hello",0,1)') == "#VALUE!"
        assert _calc('=LEFT("abc",-1)') == "#VALUE!"

    def test_case_and_trim(self) -> None:
        assert _calc('=UPPER("abc")') == "ABC"
        assert _calc('=LOWER("ABC")') == "abc"
        assert _calc('=TRIM("  a b  ")') == "a b"

    def test_concatenate(self) -> None:
        assert _calc('=CONCATENATE("a",1,"b")') == "a1b"
        assert _calc("=CONCATENATE(A1:B1)", [["x", "y"]]) == "xy"

    def test_substitute(self) -> None:
        assert _calc('=SUBSTITUTE("a-b-c","-","+")') == "a+b+c"
        assert _calc('=SUBSTITUTE("abc","","x")') == "abc"

    def test_text_and_value(self) -> None:
        assert _calc('=TEXT(1.5,"0.00")') == "1.5"
        assert _calc('=VALUE("12")') == "12"
        assert _calc('=VALUE("abc")') == "#VALUE!"

    def test_find_is_case_sensitive(self) -> None:
        assert _calc('=FIND("l","hello")') == "3"
        assert _calc('=FIND("l","hello",4)') == "4"
        assert _calc('=FIND("L","hello")') == "#VALUE!"

    def test_search_ignores_case(self) -> None:
        assert _calc('=SEARCH("L","hello")') == "3"

    def test_rept(self) -> None:
        assert _calc('=REPT("ab",3)') == "ababab"

    def test_text_aliases(self) -> None:
        assert _calc('=NBCAR("abc")') == "3"
        assert _calc('=GAUCHE("abc",2)') == "ab"
        assert _calc('=DROITE("abc",2)') == "bc"
        assert _calc('=STXT("abc",2,1)') == "b"
        assert _calc('=MAJUSCULE("a")') == "A"
        assert _calc('=MINUSCULE("A")') == "a"
        assert _calc('=SUPPRESPACE(" a ")') == "a"
        assert _calc('=CONCATENER("a","b")') == "ab"
        assert _calc('=SUBSTITUE("aa","a","b")') == "bb"
        assert _calc('=TEXTE(2)') == "2"
        assert _calc('=CNUM("3")') == "3"
        assert _calc('=TROUVE("b","abc")') == "2"
        assert _calc('=CHERCHE("B","abc")') == "2"


# ────────────────────────────────────────────────────────────────
# Dates
# ────────────────────────────────────────────────────────────────


class TestDates:
    def test_today_and_now_use_clock(self) -> None:
        assert _calc("=TODAY()", clock=lambda: _FIXED_NOW) == "2024-03-15"
        assert _calc("=NOW()", clock=lambda: _FIXED_NOW) == "2024-03-15 09:30:05"
        assert _calc("=AUJOURDHUI()", clock=lambda: _FIXED_NOW) == "2024-03-15"
        assert _calc("=MAINTENANT()", clock=lambda: _FIXED_NOW) == "2024-03-15 09:30:05"

    def test_date_parts_from_iso_text(self) -> None:
        assert _calc('=YEAR("2024-03-15")') == "2024"
        assert _calc('=MONTH("2024-03-15")') == "3"
        assert _calc('=DAY("2024-03-15")') == "15"

    def test_date_parts_from_datetime_text(self) -> None:
        assert _calc('=YEAR("2024-03-15 10:00:00")') == "2024"

    def test_date_parts_from_serial(self) -> None:
        assert _calc("=YEAR(45000)") == "2023"
        assert _calc("=MONTH(45000)") == "3"
        assert _calc("=DAY(45000)") == "15"

    def test_date_parts_from_numeric_text(self) -> None:
        assert _calc('=YEAR("45000")') == "2023"
        assert _calc('=MONTH(" 45000 ")') == "3"
        assert _calc('=DAY(45000&"")') == "15"

    def test_date_of_today(self) -> None:
        assert _calc("=YEAR(TODAY())", clock=lambda: _FIXED_NOW) == "2024"

    def test_date_aliases(self) -> None:
        assert _calc('=ANNEE("2024-03-15")') == "2024"
        assert _calc('=MOIS("2024-03-15")') == "3"
        assert _calc('=JOUR("2024-03-15")') == "15"

    def test_invalid_dates(self) -> None:
        assert _calc('=YEAR("not a date")') == "#VALUE!"
        assert _calc("=YEAR(0)") == "#VALUE!"


# ────────────────────────────────────────────────────────────────
# Lookup, unknown names and the registry
# ────────────────────────────────────────────────────────────────


class TestLookup:
    def test_vlookup_unsupported(self) -> None:
        cells = [["a", "1"], ["b", "2"]]
        assert _calc('=VLOOKUP("a",A1:B2,2)', cells) == "#ERROR!"
        assert _calc('=RECHERCHEV("a",A1:B2,2)', cells) == "#ERROR!"


class TestUnknownFunction:
    def test_name_error_shows_function(self) -> None:
        assert _calc("=FOO(1)") == "#NAME? (FOO)"
        assert _calc("=foo(1)") == "#NAME? (FOO)"

    def test_argument_errors_take_precedence(self) -> None:
        assert _calc("=FOO(1/0)") == "#DIV/0!"


class TestRegistry:
    def test_canonical_name(self) -> None:
        assert canonical_name("moyenne") == "AVERAGE"
        assert canonical_name("sum") == "SUM"
        assert canonical_name("nb.si") == "COUNTIF"

    def test_function_names_lists_aliases(self) -> None:
        names = function_names()
        assert names["AVERAGE"] == ["MOYENNE"]
        assert names["IF"] == ["SI"]
        assert names["COUNTIF"] == ["NB.SI"]
        assert names["SUM"] == []

    @pytest.mark.parametrize(
        "name",
        ["SUM", "IF", "IFERROR", "COUNTIF", "LEN", "TODAY", "VLOOKUP", "MEDIAN", "RAND"],
    )
    def test_registered(self, name: str) -> None:
        assert name in function_names()
