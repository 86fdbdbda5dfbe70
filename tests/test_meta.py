from market_core.domain.catalog.meta import ProductMeta, RegexMetaExtractor, extract_meta


def test_brand_and_size():
    assert extract_meta("Topscore Maize Meal 10KG") == ProductMeta(brand="Topscore", size="10kg")


def test_size_unit_variants():
    assert extract_meta("Fresh milk 2 Litres").size == "2l"
    assert extract_meta("Rice 1,5kg").size == "1.5kg"
    assert extract_meta("Yoghurt 6 pack").size == "6pack"


def test_multipack_size():
    assert extract_meta("Coke 6×4").size == "6x4"


def test_lowercase_leading_word_is_not_a_brand():
    assert extract_meta("maize meal 5kg").brand is None


def test_leading_size_is_not_a_brand():
    assert extract_meta("2kg Sugar") == ProductMeta(brand=None, size="2kg")


def test_no_match_returns_nulls():
    assert extract_meta("") == ProductMeta()
    assert extract_meta("   ") == ProductMeta()
    assert extract_meta("bread") == ProductMeta()


def test_extractor_is_a_plain_strategy_object():
    extractor = RegexMetaExtractor()
    assert extractor.extract("(Omo) Washing Powder 2kg") == ProductMeta(brand="Omo", size="2kg")
