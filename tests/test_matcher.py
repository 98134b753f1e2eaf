"""Tests for the procedure matcher."""

import itertools

import pytest

from clinic_assistant.config import MatcherConfig
from clinic_assistant.matching.matcher import ProcedureMatcher
from clinic_assistant.matching.trigram import similarity
from clinic_assistant.schemas.catalog_schema import CatalogField, CatalogRecord
from clinic_assistant.tools.catalog import InMemoryProcedureCatalog

RANK_NORMALIZER = 1.64493406685


def _matcher(*records: CatalogRecord) -> ProcedureMatcher:
    return ProcedureMatcher(InMemoryProcedureCatalog(records), MatcherConfig())


class TestBestMatch:
    def test_picks_best_fragment(self, matcher):
        result = matcher.best_match(["ressonancia do joelho", "RM genicular"])
        assert result.matched_text == "Ressonância Magnética do Joelho"
        assert result.code == "41101170"
        assert result.audit_lead_days == "10"
        assert result.field == CatalogField.PROCEDURE_NAME
        assert result.fragment == "ressonancia do joelho"
        assert result.score == pytest.approx(22 / 32)

    def test_score_is_the_higher_fragment_score(self, matcher):
        combined = matcher.best_match(["ressonancia do joelho", "RM genicular"])
        alone = matcher.best_match(["ressonancia do joelho"])
        other = matcher.best_match(["RM genicular"])
        assert combined.score == alone.score
        assert other is None or other.score <= combined.score

    @pytest.mark.parametrize("fragments", [[], [""], ["   ", "\n", "\t"]])
    def test_blank_fragments_yield_none(self, matcher, fragments):
        assert matcher.best_match(fragments) is None

    def test_unrelated_text_yields_none(self, matcher):
        assert matcher.best_match(["lorem ipsum dolor"]) is None

    def test_later_fragment_can_win(self, matcher):
        result = matcher.best_match(["joelho esquerdo", "ressonancia magnetica do joelho"])
        assert result.fragment == "ressonancia magnetica do joelho"
        assert result.score == pytest.approx(1.0)

    def test_null_audit_lead_time(self, matcher):
        result = matcher.best_match(["Artroscopia do joelho"])
        assert result.code == "30715016"
        assert result.audit_lead_days is None

    def test_zero_audit_lead_time(self, matcher):
        assert matcher.best_match(["hemograma completo"]).audit_lead_days == "0"


class TestScoringModel:
    def test_full_text_rescues_low_similarity(self):
        matcher = _matcher(CatalogRecord(
            code="1",
            procedure_name=(
                "Tomografia Computadorizada de Coluna Lombar com Contraste Intravenoso Bilateral"
            ),
        ))
        result = matcher.best_match(["lombar"])
        assert result is not None
        assert result.field == CatalogField.PROCEDURE_NAME
        assert result.score == pytest.approx(0.2 / RANK_NORMALIZER)

    def test_plural_fragment_passes_full_text_gate(self):
        record = CatalogRecord(
            code="1",
            procedure_name="Ressonância Magnética do Joelho com Contraste Bilateral Sequencial",
        )
        result = _matcher(record).best_match(["joelhos"])
        assert result is not None
        assert result.field == CatalogField.PROCEDURE_NAME
        assert result.score == pytest.approx(0.2 / RANK_NORMALIZER)

    def test_lower_tiers_use_similarity_only(self):
        record = CatalogRecord(
            code="1",
            procedure_name="Exame especial",
            subgroup="Densitometria óssea de corpo inteiro",
        )
        result = _matcher(record).best_match(["densitometria"])
        assert result.field == CatalogField.SUBGROUP
        assert result.score == pytest.approx(similarity("densitometria", record.subgroup))

    def test_generic_term_only_scores_through_heavy_fields(self):
        matcher = _matcher(CatalogRecord(
            code="1",
            procedure_name="Exame especial",
            group="Métodos diagnósticos por imagem",
        ))
        result = matcher.best_match(["imagem"])
        assert result.field == CatalogField.PROCEDURE_NAME
        assert result.score == pytest.approx(0.2 * 0.2 / RANK_NORMALIZER)

    def test_ties_keep_first_record(self):
        matcher = _matcher(
            CatalogRecord(code="A", procedure_name="Eletrocardiograma"),
            CatalogRecord(code="B", procedure_name="Eletrocardiograma"),
        )
        assert matcher.best_match(["eletrocardiograma"]).code == "A"

    def test_blank_field_values_are_skipped(self):
        matcher = _matcher(CatalogRecord(code="1", procedure_name="  ", subgroup="Colonoscopia"))
        result = matcher.best_match(["colonoscopia"])
        assert result.field == CatalogField.SUBGROUP

    def test_threshold_is_configurable(self):
        record = CatalogRecord(code="1", subgroup="Ressonância magnética")
        strict = ProcedureMatcher(
            InMemoryProcedureCatalog([record]), MatcherConfig(similarity_threshold=0.9)
        )
        assert strict.best_match(["ressonancia"]) is None
        assert _matcher(record).best_match(["ressonancia"]) is not None


class TestProperties:
    FRAGMENTS = [
        "GUIA SP/SADT",
        "ressonancia do joelho",
        "RM genicular",
        "tomografia cranio",
        "paciente em jejum",
    ]

    def test_more_fragments_never_lower_the_score(self, matcher):
        def score(fragments):
            result = matcher.best_match(fragments)
            return 0.0 if result is None else result.score

        for size in range(1, len(self.FRAGMENTS)):
            for subset in itertools.combinations(self.FRAGMENTS, size):
                assert score(self.FRAGMENTS) >= score(list(subset))

    @pytest.mark.parametrize("variant", [
        "RESSONÂNCIA DO JOELHO",
        "Ressonância do Joelho",
        "ressonancia do joelho",
    ])
    def test_case_and_accents_do_not_matter(self, matcher, variant):
        baseline = matcher.best_match(["ressonancia do joelho"])
        result = matcher.best_match([variant])
        assert result.score == baseline.score
        assert result.matched_text == baseline.matched_text


class TestSearch:
    def test_ranked_candidates(self, matcher):
        candidates = matcher.search("ressonancia do joelho")
        scores = [c.score for c in candidates]
        assert scores == sorted(scores, reverse=True)
        assert candidates[0].record.code == "41101170"

    def test_limit(self, matcher):
        assert len(matcher.search("ressonancia do joelho", limit=1)) == 1

    def test_blank_fragment(self, matcher):
        assert matcher.search("   ") == []

    def test_equal_scores_sort_by_field_name(self):
        matcher = _matcher(CatalogRecord(
            code="1", procedure_name="Colonoscopia", chapter="Colonoscopia"
        ))
        candidates = matcher.search("colonoscopia")
        assert [c.score for c in candidates] == [1.0, 1.0]
        assert [c.field for c in candidates] == [
            CatalogField.CHAPTER, CatalogField.PROCEDURE_NAME,
        ]


class TestRefresh:
    def test_new_records_need_refresh(self, catalog, matcher):
        catalog.add(CatalogRecord(code="99", procedure_name="Cintilografia Miocárdica"))
        assert matcher.best_match(["cintilografia miocardica"]) is None
        matcher.refresh()
        assert matcher.best_match(["cintilografia miocardica"]).code == "99"

    def test_duplicate_code_rejected(self, catalog):
        with pytest.raises(ValueError, match="Duplicate"):
            catalog.add(CatalogRecord(code="41101170", procedure_name="Other"))

    def test_lookup_by_code(self, catalog):
        assert catalog.get("40202666").procedure_name == "Colonoscopia"
        assert catalog.get("00000000") is None
