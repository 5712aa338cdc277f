"""
Tests for the Import Pipeline

Run with: python3 -m pytest test_pipeline.py -v
"""

import pytest
from datetime import datetime
from insightstore.errors import (
    EmptySourceError,
    NoValidProductsError,
    SourceUnreadableError
)
from insightstore.pipeline import (
    ImportPipeline,
    ImportStage,
    get_import_summary,
    import_file,
    import_rows
)


NOW = datetime(2024, 3, 15, 12, 0)


class TestScenarios:
    """End-to-end imports over decoded rows."""

    def test_full_row(self):
        rows = [{
            "codigo": "P001", "produto": "Camiseta", "preco": "60,00",
            "estoque": "50", "data": "01/10/2023", "qtd": "2",
        }]
        result = import_rows(rows, now=NOW)
        assert result, f"Expected success, got: {result.message}"

        data = result.data
        assert len(data.products) == 1
        assert data.products[0].id == "P001"
        assert data.products[0].price == pytest.approx(60.0)
        assert len(data.inventory) == 1
        assert data.inventory[0].quantity == 50
        assert len(data.sales) == 1
        assert data.sales[0].quantity == 2
        assert data.sales[0].total == pytest.approx(120.0)

    def test_catalog_only_file(self):
        rows = [{"id_produto": "A1", "nome": "Caderno", "preco_venda": "15,90"}]
        result = import_rows(rows, now=NOW)
        assert result.valid

        data = result.data
        assert data.products[0].min_stock_level == 5
        assert data.inventory[0].quantity == 0
        assert data.sales == ()

    def test_no_valid_rows_lists_columns(self):
        rows = [
            {"Data": "01/10/2023", "Valor": "10"},
            {"Data": "02/10/2023", "Valor": "12", "Observação": "x"},
        ]
        result = import_rows(rows, now=NOW)
        assert not result
        assert isinstance(result.error, NoValidProductsError)
        assert result.error.observed_columns == ["data", "valor", "observacao"]
        assert "data, valor, observacao" in result.message

    def test_empty_table(self):
        result = import_rows([], now=NOW)
        assert not result.valid
        assert isinstance(result.error, EmptySourceError)

    def test_sales_sorted_desc_stable(self):
        rows = [
            {"sku": "P1", "nome": "A", "data": "01/10/2023", "qtd": "1"},
            {"sku": "P2", "nome": "B", "data": "05/10/2023", "qtd": "2"},
            {"sku": "P3", "nome": "C", "data": "01/10/2023", "qtd": "3"},
            {"sku": "P4", "nome": "D", "data": "05/10/2023", "qtd": "4"},
        ]
        data = import_rows(rows, now=NOW).data
        assert [sale.quantity for sale in data.sales] == [2, 4, 1, 3]

    def test_mixed_valid_and_invalid_rows(self):
        rows = [
            {"sku": "P1", "nome": "A"},
            {"sku": "", "nome": "B"},
            {"sku": "P2", "nome": ""},
        ]
        result = import_rows(rows, now=NOW)
        assert result.valid
        assert result.stats.rows_total == 3
        assert result.stats.rows_rejected == 2


class TestPipelineStages:
    """Test the stage transitions of a single run."""

    def test_done_after_success(self):
        pipeline = ImportPipeline(now=NOW)
        pipeline.run([{"sku": "P1", "nome": "A"}])
        assert pipeline.stage is ImportStage.DONE
        assert pipeline.stats.products == 1

    def test_failed_after_validation_error(self):
        pipeline = ImportPipeline(now=NOW)
        with pytest.raises(NoValidProductsError):
            pipeline.run([{"foo": "bar"}])
        assert pipeline.stage is ImportStage.FAILED

    def test_failed_on_decoding(self):
        pipeline = ImportPipeline(now=NOW)
        with pytest.raises(SourceUnreadableError):
            pipeline.run_file(b"x", "notes.pdf")
        assert pipeline.stage is ImportStage.FAILED


class TestImportFile:
    """Test decoding and importing in one call."""

    def test_semicolon_csv(self):
        content = (
            "\ufeffCódigo;Descrição;Preço;Estoque;Data;Qtd\n"
            "P001;Camiseta;60,00;50;01/10/2023;2\n"
            "P001;Camiseta;60,00;45;02/10/2023;5\n"
        ).encode("utf-8")
        result = import_file(content, "vendas.csv", now=NOW)
        assert result, f"Expected success, got: {result.message}"
        assert result.data.inventory[0].quantity == 45
        assert [s.total for s in result.data.sales] == [300.0, 120.0]

    def test_trailing_delimiter_export_keeps_ids(self):
        content = (
            "codigo,produto,preco,estoque\n"
            "P001,Camiseta,60,50,\n"
        ).encode("utf-8")
        result = import_file(content, "export.csv", now=NOW)
        assert result, f"Expected success, got: {result.message}"
        product = result.data.products[0]
        assert (product.id, product.name, product.price) == ("P001", "Camiseta", 60.0)
        assert result.data.inventory[0].quantity == 50

    def test_one_ragged_row_does_not_abort_import(self):
        content = (
            "codigo,produto,preco\n"
            "P001,Camiseta,60\n"
            "P002,Calca,80,extra\n"
        ).encode("utf-8")
        result = import_file(content, "export.csv", now=NOW)
        assert result, f"Expected success, got: {result.message}"
        assert [p.id for p in result.data.products] == ["P001", "P002"]

    def test_unreadable_encoding(self):
        content = "Código,Produto\nP1,Café\n".encode("latin-1")
        result = import_file(content, "dados.csv", now=NOW)
        assert not result
        assert "UTF-8" in result.message


class TestSummary:
    """Test the human-readable summary."""

    def test_success_summary(self):
        result = import_rows([{"sku": "P1", "nome": "A"}, {"x": "1"}], now=NOW)
        summary = get_import_summary(result)
        assert summary["success"]
        assert summary["details"]["products"] == 1
        assert summary["details"]["rows_rejected"] == 1
        assert len(summary["details"]["rejected_samples"]) == 1

    def test_failure_summary(self):
        summary = get_import_summary(import_rows([], now=NOW))
        assert summary["success"] is False
        assert summary["details"] is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
