from move_extractor.line_normalizer import normalize_line, normalize_lines
from move_extractor.place_cleaner import clean_place


class TestNormalizeLine:
    def test_trims_and_collapses_whitespace(self):
        assert normalize_line("   Wed  5th   Mar\t09:00  ") == "Wed 5th Mar 09:00"

    def test_strips_emphasis_around_labels(self):
        assert normalize_line("  **From:**   Depot  A ") == "From: Depot A"
        assert normalize_line("*Collection address*: 09:00 - Unit 4") == "Collection address: 09:00 - Unit 4"
        assert normalize_line("__To__ : Site B") == "To: Site B"

    def test_strips_emphasis_around_label_without_colon(self):
        assert normalize_line("**Drop off** Site B") == "Drop off Site B"

    def test_keeps_underscore_rule(self):
        assert normalize_line("  __________ ") == "__________"

    def test_blank_lines_are_dropped(self):
        assert normalize_line("   ") == ""
        assert normalize_line("***") == ""
        assert normalize_lines(["From: A", "", "  ", "**", "To: B"]) == ["From: A", "To: B"]

    def test_words_containing_labels_untouched(self):
        assert normalize_line("Photo: tomorrow") == "Photo: tomorrow"


class TestCleanPlace:
    def test_label_prefixes(self):
        assert clean_place("Location - Depot A") == "Depot A"
        assert clean_place("unit base - Leeds Yard") == "Leeds Yard"
        assert clean_place("Office – Head Office") == "Head Office"

    def test_w3w_tag(self):
        assert clean_place("Site B w3w: ///index.home.raft") == "Site B"

    def test_leading_emphasis(self):
        assert clean_place("**Warehouse 1") == "Warehouse 1"

    def test_empty(self):
        assert clean_place("") == ""
        assert clean_place("  ") == ""
