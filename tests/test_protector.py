#!/usr/bin/env python3
"""
Tests for sentinel-token placeholder protection.
Covers token numbering, selector collapse, whitespace handling and loss detection.
"""

import pytest

from fltr.errors import PlaceholderLossError
from fltr.fluent import parse, serialize
from fltr.protector import PlaceholderProtector, flatten


@pytest.fixture
def protector():
    return PlaceholderProtector()


def entry_of(content):
    return parse(content)[0]


def test_protect_variables(protector):
    """Test 1: placeables become numbered tokens in order."""
    entry = entry_of("welcome = Hi { $first }, meet { $second }!")
    protected = protector.protect(entry.value)
    assert protected.text == "Hi ___0___, meet ___1___!"
    assert [p.source for p in protected.placeables.values()] == ["{ $first }", "{ $second }"]


def test_restore_puts_placeables_back(protector):
    """Test 2: restored variables are exactly the original placeables."""
    entry = entry_of("hello-world = Hello, { $who }!")
    protected = protector.protect_entry(entry)
    result = protector.restore_entry(entry, protected, {None: "Bonjour, ___0___!"})
    assert serialize([result]) == "hello-world = Bonjour, { $who }!"
    assert result.value[1] == entry.value[1]


def test_translator_may_reorder_tokens(protector):
    """Test 3: token order in the translation is free."""
    entry = entry_of("order = { $a } before { $b }")
    protected = protector.protect_entry(entry)
    result = protector.restore_entry(entry, protected, {None: "___1___ nach ___0___"})
    assert serialize([result]) == "order = { $b } nach { $a }"


def test_tokens_continue_across_attributes(protector):
    """Test 4: one token sequence per entry, value first."""
    entry = entry_of("login = Hi { $name }\n    .title = Bye { $name } and { -brand }")
    protected = protector.protect_entry(entry)
    assert protected.value.text == "Hi ___0___"
    assert protected.attributes["title"].text == "Bye ___1___ and ___2___"
    assert [name for name, _ in protected.units()] == [None, "title"]


def test_selector_collapses_to_default_variant(protector):
    """Test 5: the default variant's text joins the sentence."""
    entry = entry_of(
        "shared-photos = { $user_name } { $photo_count -> [0] hasn't added any photos yet "
        "[one] added a new photo *[other] added { $photo_count } new photos }."
    )
    protected = protector.protect_entry(entry)
    assert protected.value.text == "___0___ added ___1___ new photos."

    result = protector.restore_entry(
        entry, protected, {None: "___0___ ajouté ___1___ nouvelles photos."}
    )
    assert not result.has_selector
    assert serialize([result]) == (
        "shared-photos = { $user_name } ajouté { $photo_count } nouvelles photos."
    )


def test_multiline_value_keeps_layout(protector):
    """Test 6: line breaks survive as indented continuation lines."""
    entry = entry_of("login =\n    Sign in to continue\n    with your account")
    protected = protector.protect(entry.value)
    assert protected.text == "Sign in to continue\nwith your account"

    restored = protector.restore("Connectez-vous\navec votre compte", protected)
    result = protector.restore_entry(entry, protector.protect_entry(entry), {
        None: "Connectez-vous\navec votre compte",
    })
    assert restored == result.value
    assert serialize([result]) == "login =\n    Connectez-vous\n    avec votre compte"


def test_empty_lines_in_translation_are_dropped(protector):
    """Test 7: a blank line would end the entry, so it is not written."""
    entry = entry_of("note = One")
    protected = protector.protect(entry.value)
    restored = protector.restore("Un\n\n  Deux", protected)
    result = protector.restore_entry(entry, protector.protect_entry(entry), {None: "Un\n\n  Deux"})
    assert serialize([result]) == "note = Un\n    Deux"
    assert len(parse(serialize([result]))) == 1
    assert restored == result.value


def test_braces_in_translation_are_a_loss(protector):
    """Test 8: braces returned by the service never become new placeables."""
    entry = entry_of("greet = Hello { $who }!")
    protected = protector.protect_entry(entry)
    with pytest.raises(PlaceholderLossError) as exc_info:
        protector.restore_entry(entry, protected, {None: "Bonjour { ___0___ } !"})
    assert exc_info.value.missing == []
    assert exc_info.value.unexpected == ["{", "}"]


@pytest.mark.parametrize("translated, missing, unexpected", [
    ("Bonjour !", ["___0___"], []),
    ("Bonjour ___0___ ___0___", [], ["___0___"]),
    ("Bonjour ___0___ ___7___", [], ["___7___"]),
])
def test_loss_detection(protector, translated, missing, unexpected):
    """Test 9: missing, repeated and unknown tokens are all rejected."""
    entry = entry_of("hello-world = Hello, { $who }!")
    protected = protector.protect(entry.value)
    with pytest.raises(PlaceholderLossError) as exc_info:
        protector.restore(translated, protected, "hello-world")
    assert exc_info.value.missing == missing
    assert exc_info.value.unexpected == unexpected
    assert exc_info.value.identifier == "hello-world"


def test_fallback_entry_is_flattened_source(protector):
    """Test 10: fallback keeps the source language and drops the selector."""
    entry = entry_of(
        "emails = { $n ->\n    [one] One new email\n   *[other] { $n } new emails\n}"
    )
    result = protector.fallback_entry(entry)
    assert not result.has_selector
    assert serialize([result]) == "emails = { $n } new emails"


def test_flatten_without_selector_is_identity():
    """Test 11: plain patterns are untouched."""
    entry = entry_of("plain = Just { $text }")
    assert flatten(entry.value) == entry.value


def test_leading_and_trailing_whitespace_kept(protector):
    """Test 12: whitespace around the text is not sent and comes back unchanged."""
    entry = entry_of("spaced =   Hello  ")
    protected = protector.protect(entry.value)
    assert protected.text == "Hello"
    assert protected.leading == ""
    assert protected.trailing == "  "
    result = protector.restore_entry(entry, protector.protect_entry(entry), {None: "Salut"})
    assert serialize([result]) == "spaced =   Salut  "


def test_brackets_in_multiline_default_variant(protector):
    """Test 13: bracketed words in variant text reach the service as plain text."""
    entry = entry_of(
        "n = { $c ->\n    [one] One item\n   *[other] See [docs] for { $c } items\n}"
    )
    protected = protector.protect_entry(entry)
    assert protected.value.text == "See [docs] for ___0___ items"
    result = protector.restore_entry(entry, protected, {None: "Voir [docs] pour ___0___ éléments"})
    assert serialize([result]) == "n = Voir [docs] pour { $c } éléments"


def test_token_like_source_text_is_protected(protector):
    """Test 14: a literal ___N___ in the source gets its own token and comes back verbatim."""
    entry = entry_of("code = Use ___1___ with { $x }")
    protected = protector.protect_entry(entry)
    assert protected.value.text == "Use ___0___ with ___1___"
    assert len(protected.value.placeables) == 2

    result = protector.restore_entry(entry, protected, {None: "Utilisez ___0___ avec ___1___"})
    assert serialize([result]) == "code = Utilisez ___1___ avec { $x }"

    with pytest.raises(PlaceholderLossError) as exc_info:
        protector.restore("Utilisez ___1___ avec ___1___", protected.value, "code")
    assert exc_info.value.missing == ["___0___"]
