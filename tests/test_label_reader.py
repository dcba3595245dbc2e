import asyncio

import pytest

from conftest import FakeOpenAI
from services.openai.label_reader import LabelReader, apply_overrides

REPLY = '{"product":"SHARPS CONTAINER 10L","expiryDate":"2027-01-01"}'


def _read(reader, *args, **kwargs):
    return asyncio.run(reader.read_label(*args, **kwargs))


def test_reads_label_and_sends_image_as_data_url(png_bytes):
    client = FakeOpenAI(REPLY)
    reader = LabelReader(client, model="test-model")

    result = _read(reader, png_bytes, "image/png")

    assert result == {"product": "SHARPS CONTAINER 10L", "expiryDate": "2027-01-01"}
    call = client.responses.calls[0]
    assert call["model"] == "test-model"
    assert call["temperature"] == 0.2
    user_content = call["input"][1]["content"]
    assert "expiryDate" in user_content[0]["text"]
    assert user_content[1]["image_url"].startswith("data:image/png;base64,")


def test_unsupported_mime_type_is_sent_as_jpeg(png_bytes):
    client = FakeOpenAI(REPLY)
    _read(LabelReader(client), png_bytes, "image/heic")
    image_url = client.responses.calls[0]["input"][1]["content"][1]["image_url"]
    assert image_url.startswith("data:image/jpeg;base64,")


def test_manual_values_override_extraction(png_bytes):
    reader = LabelReader(FakeOpenAI(REPLY))
    result = _read(reader, png_bytes, manual_product="  Hand Sanitizer  ", manual_date="06/07/2029")
    assert result == {"product": "Hand Sanitizer", "expiryDate": "2029-07-06"}


def test_placeholder_name_does_not_override(png_bytes):
    reader = LabelReader(FakeOpenAI(REPLY))
    result = _read(reader, png_bytes, manual_product="product_3")
    assert result["product"] == "SHARPS CONTAINER 10L"


def test_unparseable_reply_degrades_to_empty_fields(png_bytes):
    reader = LabelReader(FakeOpenAI("Sorry, the photo is too blurry."))
    assert _read(reader, png_bytes) == {"product": "", "expiryDate": ""}


def test_model_errors_propagate(png_bytes):
    reader = LabelReader(FakeOpenAI(error=RuntimeError("upstream unavailable")))
    with pytest.raises(RuntimeError, match="upstream unavailable"):
        _read(reader, png_bytes)


def test_empty_image_is_rejected():
    with pytest.raises(ValueError):
        _read(LabelReader(FakeOpenAI(REPLY)), b"")


def test_missing_client_is_rejected():
    with pytest.raises(ValueError):
        LabelReader(None)


def test_apply_overrides_truncates_and_ignores_blanks():
    extracted = {"product": "Wipes", "expiryDate": "2027-01-01"}
    assert apply_overrides(extracted, "   ", "  ") == extracted
    assert apply_overrides(extracted, "Y" * 150, None)["product"] == "Y" * 120
