"""
Unit tests for AI extraction (prompt building, response parsing, Claude provider).

Run: pytest tests/unit/test_extraction_service.py -v
"""

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from config.import_config import ImportConfig
from exceptions import AIConfigurationError, ExtractionError
from models.product_import import ColorSpec, ColumnMapping, ExtractionRequest
from services.extraction_service import (
    ClaudeExtractionProvider,
    build_mapping_context,
    build_prompt,
    parse_extraction_response,
)


def _request(**overrides) -> ExtractionRequest:
    data = {
        "rows": [{"Produto": "Sofá Retrátil", "Valor": "R$ 1.999,90", "Cor": "Cinza"}],
        "existing_categories": ["Sofás", "Mesas"],
        "existing_colors": [ColorSpec(name="Cinza", hex="#808080")],
        "existing_sizes": ["Compacto", "Grande"],
    }
    data.update(overrides)
    return ExtractionRequest(**data)


def _claude_reply(text: str, stop_reason: str = "end_turn"):
    return SimpleNamespace(
        content=[SimpleNamespace(type="text", text=text)],
        stop_reason=stop_reason,
    )


class TestBuildPrompt:
    """Tests for build_prompt()"""

    def test_contains_response_schema_fields(self):
        """Should spell out every field the parser reads."""
        prompt = build_prompt(_request())

        for field in ("products", "newCategories", "newColors", "errors",
                      "name", "description", "price", "category", "sizes", "colors"):
            assert f'"{field}"' in prompt

    def test_lists_existing_reference_names(self):
        """Should include existing categories, colors and sizes."""
        prompt = build_prompt(_request())

        assert '["Sofás", "Mesas"]' in prompt
        assert '["Cinza"]' in prompt
        assert '["Compacto", "Grande"]' in prompt

    def test_includes_rows_as_json(self):
        """Should embed rows without escaping accents."""
        prompt = build_prompt(_request())

        assert '"Produto": "Sofá Retrátil"' in prompt
        assert "R$ 1.999,90" in prompt

    def test_states_price_and_hex_rules(self):
        """Should tell the model how to normalize prices and colors."""
        prompt = build_prompt(_request())

        assert "Prices must be plain numbers" in prompt
        assert "no valid price, use 0" in prompt
        assert "infer one" in prompt

    def test_row_numbers_follow_batch_offset(self):
        """Should tell the model which spreadsheet row the batch starts at."""
        prompt = build_prompt(_request(first_row_number=52))

        assert "row 52" in prompt

    def test_no_sizes_registered(self):
        """Should not ask to match sizes against an empty list."""
        prompt = build_prompt(_request(existing_sizes=[]))

        assert "no dimensions are registered yet" in prompt

    def test_automatic_mode_has_no_mapping_section(self):
        """Should omit the mapping block when no mapping is given."""
        prompt = build_prompt(_request(column_mapping=None))

        assert "mapped these columns" not in prompt

    def test_manual_mapping_section(self):
        """Should list mapped columns and mark the rest for auto-detection."""
        mapping = ColumnMapping(name="Produto", price="Valor")

        prompt = build_prompt(_request(column_mapping=mapping))

        assert 'Product name: column "Produto"' in prompt
        assert 'Price: column "Valor"' in prompt
        assert 'Category: column "detect automatically"' in prompt


class TestBuildMappingContext:
    """Tests for build_mapping_context()"""

    def test_empty_mapping_is_automatic_mode(self):
        """Should treat an all-blank mapping like no mapping."""
        assert build_mapping_context(ColumnMapping(name="  ", price="")) == ""
        assert build_mapping_context(None) == ""

    def test_stale_column_names_pass_through(self):
        """Should not check mapped columns against the sheet."""
        context = build_mapping_context(ColumnMapping(colors="Coluna Removida"))

        assert 'column "Coluna Removida"' in context


class TestParseExtractionResponse:
    """Tests for parse_extraction_response()"""

    def test_parses_full_response(self):
        """Should build products, new names and errors."""
        # Arrange
        text = json.dumps({
            "products": [{
                "name": "Sofá Retrátil",
                "description": "Sofá de 3 lugares",
                "price": 1999.9,
                "category": "Sofás",
                "sizes": ["Grande"],
                "colors": [{"name": "Rosa", "hex": "#ea9fc2"}],
            }],
            "newCategories": ["Poltronas"],
            "newColors": [{"name": "Rosa", "hex": "#EA9FC2"}],
            "errors": ["Row 4: price missing"],
        })

        # Act
        result = parse_extraction_response(text)

        # Assert
        product = result.products[0]
        assert product.name == "Sofá Retrátil"
        assert product.price == 1999.9
        assert product.sizes == ["Grande"]
        assert product.colors[0].hex == "#EA9FC2"
        assert result.new_categories == ["Poltronas"]
        assert result.new_colors == [ColorSpec(name="Rosa", hex="#EA9FC2")]
        assert result.errors == ["Row 4: price missing"]

    def test_strips_markdown_fences(self):
        """Should accept JSON wrapped in ```json fences."""
        text = '```json\n{"products": [{"name": "Mesa", "price": 10, "category": "Mesas"}]}\n```'

        result = parse_extraction_response(text)

        assert [p.name for p in result.products] == ["Mesa"]

    def test_missing_lists_default_to_empty(self):
        """Should default every missing list to []."""
        result = parse_extraction_response("{}")

        assert result.products == []
        assert result.new_categories == []
        assert result.new_colors == []
        assert result.errors == []

    def test_coerces_malformed_fields(self):
        """Should coerce price strings and comma-separated sizes/colors."""
        text = json.dumps({"products": [{
            "name": "Cadeira",
            "price": "R$ 1.299,90",
            "category": "Cadeiras",
            "sizes": "P, M",
            "colors": "Preto, Branco",
        }]})

        product = parse_extraction_response(text).products[0]

        assert product.price == pytest.approx(1299.9)
        assert product.sizes == ["P", "M"]
        assert [c.name for c in product.colors] == ["Preto", "Branco"]

    def test_invalid_price_becomes_zero(self):
        """Should use 0 for unparseable prices."""
        text = json.dumps({"products": [{"name": "Rack", "price": "consultar", "category": "Racks"}]})

        assert parse_extraction_response(text).products[0].price == 0.0

    def test_product_without_name_is_dropped_and_reported(self):
        """Should skip invalid products and add an error."""
        text = json.dumps({"products": [
            {"name": "", "price": 10, "category": "Mesas"},
            {"name": "Mesa", "price": 10, "category": "Mesas"},
        ]})

        result = parse_extraction_response(text)

        assert [p.name for p in result.products] == ["Mesa"]
        assert result.errors == ["Product #1 ignored: invalid data (no name)"]

    def test_new_colors_as_plain_strings(self):
        """Should accept color names without hex."""
        result = parse_extraction_response('{"newColors": ["Verde Musgo", ""]}')

        assert result.new_colors == [ColorSpec(name="Verde Musgo")]

    def test_invalid_hex_is_dropped(self):
        """Should keep the color but drop an unusable hex code."""
        result = parse_extraction_response('{"newColors": [{"name": "Ocre", "hex": "amarelado"}]}')

        assert result.new_colors == [ColorSpec(name="Ocre", hex=None)]

    def test_invalid_json_raises(self):
        """Should raise ExtractionError for non-JSON text."""
        with pytest.raises(ExtractionError):
            parse_extraction_response("Sorry, I cannot help with that.")

    def test_json_array_raises(self):
        """Should require a JSON object at the top level."""
        with pytest.raises(ExtractionError):
            parse_extraction_response('[{"name": "Mesa"}]')


class TestClaudeExtractionProvider:
    """Tests for ClaudeExtractionProvider"""

    def test_not_configured_without_key(self):
        """Should report unconfigured and refuse to extract."""
        provider = ClaudeExtractionProvider(ImportConfig(anthropic_api_key=None))

        assert provider.is_configured is False
        with pytest.raises(AIConfigurationError):
            asyncio.run(provider.extract(_request()))

    def test_sends_prompt_with_configured_model(self):
        """Should call the Messages API with config values and parse the reply."""
        # Arrange
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_claude_reply(
            '{"products": [{"name": "Sofá Retrátil", "price": 1999.9, "category": "Sofás"}]}'
        ))
        config = ImportConfig(anthropic_api_key="k", ai_model="claude-test", ai_max_tokens=1024, ai_temperature=0.2)
        provider = ClaudeExtractionProvider(config, client=client)

        # Act
        result = asyncio.run(provider.extract(_request()))

        # Assert
        kwargs = client.messages.create.call_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 1024
        assert kwargs["temperature"] == 0.2
        assert "Sofá Retrátil" in kwargs["messages"][0]["content"]
        assert result.products[0].name == "Sofá Retrátil"

    def test_api_error_becomes_extraction_error(self):
        """Should wrap anthropic errors."""
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        ))
        provider = ClaudeExtractionProvider(ImportConfig(anthropic_api_key="k"), client=client)

        with pytest.raises(ExtractionError) as exc_info:
            asyncio.run(provider.extract(_request()))

        assert exc_info.value.status_code == 503

    def test_non_json_reply_becomes_extraction_error(self):
        """Should fail the batch when the reply is not JSON."""
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=_claude_reply('{"products": [', stop_reason="max_tokens"))
        provider = ClaudeExtractionProvider(ImportConfig(anthropic_api_key="k"), client=client)

        with pytest.raises(ExtractionError):
            asyncio.run(provider.extract(_request()))
