from places_gateway.models import InputItem, OutputItem
from places_gateway.transformer import encode_output, transform


def _items():
    return [
        InputItem(code="MOW", name="Moscow", country_name="Russia"),
        InputItem(code="LED", name="Saint Petersburg", country_name="Russia"),
        InputItem(code="BER", name="Berlin", country_name="Germany"),
    ]


def test_transform_renames_fields():
    output = transform([InputItem(code="MOW", name="Moscow", country_name="Russia")])

    assert output == (OutputItem(slug="MOW", subtitle="Russia", title="Moscow"),)


def test_transform_preserves_order_and_length():
    items = _items()

    output = transform(items)

    assert len(output) == len(items)
    assert [o.slug for o in output] == [i.code for i in items]
    assert [o.title for o in output] == [i.name for i in items]


def test_transform_is_idempotent():
    items = _items()

    assert transform(items) == transform(items)


def test_transform_keeps_items_with_empty_fields():
    output = transform([InputItem(), InputItem(code="X")])

    assert output == (
        OutputItem(slug="", subtitle="", title=""),
        OutputItem(slug="X", subtitle="", title=""),
    )


def test_transform_empty_collection():
    assert transform([]) == ()


def test_encode_output_is_compact_json_array():
    body = encode_output(transform([InputItem(code="MOW", name="Moscow", country_name="Russia")]))

    assert body == b'[{"slug":"MOW","subtitle":"Russia","title":"Moscow"}]'


def test_encode_empty_output():
    assert encode_output(()) == b"[]"
