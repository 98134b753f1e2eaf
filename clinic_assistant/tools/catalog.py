"""
In-memory procedure catalog.

In production the catalog is a relational table of the national
procedure terminology; this module holds a representative sample with
the same hierarchical fields.
"""

import logging
from typing import Iterable, Optional, Protocol

from clinic_assistant.schemas.catalog_schema import CatalogRecord

logger = logging.getLogger(__name__)

_IMAGING = "Procedimentos diagnósticos e terapêuticos"
_CLINICAL = "Procedimentos gerais"

PROCEDURE_CATALOG: list[CatalogRecord] = [
    CatalogRecord(
        code="41101170",
        procedure_name="Ressonância Magnética do Joelho",
        terminology_label="RM - Articulação (por articulação)",
        subgroup="Ressonância magnética",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=10,
    ),
    CatalogRecord(
        code="41101014",
        procedure_name="Ressonância Magnética do Crânio",
        terminology_label="RM - Crânio (encéfalo)",
        subgroup="Ressonância magnética",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=10,
    ),
    CatalogRecord(
        code="41001010",
        procedure_name="Tomografia Computadorizada do Crânio",
        terminology_label="TC - Crânio ou sela túrcica ou órbitas",
        subgroup="Tomografia computadorizada",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=5,
    ),
    CatalogRecord(
        code="40901122",
        procedure_name="Ultrassonografia de Abdome Total",
        terminology_label="US - Abdome total",
        subgroup="Ultrassonografia diagnóstica",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=0,
    ),
    CatalogRecord(
        code="40808041",
        procedure_name="Mamografia Convencional Bilateral",
        terminology_label="Mamografia convencional bilateral",
        subgroup="Radiologia convencional",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=0,
    ),
    CatalogRecord(
        code="40808130",
        procedure_name="Densitometria Óssea Duo-energética",
        terminology_label="Densitometria óssea - coluna e fêmur",
        subgroup="Densitometria",
        group="Métodos diagnósticos por imagem",
        chapter=_IMAGING,
        audit_lead_days=5,
    ),
    CatalogRecord(
        code="40202666",
        procedure_name="Colonoscopia",
        terminology_label="Colonoscopia com ou sem biópsia",
        subgroup="Endoscopia diagnóstica",
        group="Endoscopia",
        chapter=_IMAGING,
        audit_lead_days=5,
    ),
    CatalogRecord(
        code="40304361",
        procedure_name="Hemograma Completo",
        terminology_label="Hemograma com contagem de plaquetas",
        subgroup="Hematologia laboratorial",
        group="Análises clínicas",
        chapter=_IMAGING,
        audit_lead_days=0,
    ),
    CatalogRecord(
        code="40101010",
        procedure_name="Eletrocardiograma",
        terminology_label="ECG convencional de até 12 derivações",
        subgroup="Eletrofisiologia cardíaca",
        group="Métodos diagnósticos em cardiologia",
        chapter=_IMAGING,
        audit_lead_days=0,
    ),
    CatalogRecord(
        code="30715016",
        procedure_name="Artroscopia do Joelho",
        terminology_label="Artroscopia para diagnóstico com ou sem biópsia",
        subgroup="Joelho",
        group="Sistema músculo-esquelético e articulações",
        chapter="Procedimentos cirúrgicos e invasivos",
        audit_lead_days=None,
    ),
    CatalogRecord(
        code="10101012",
        procedure_name="Consulta em Consultório",
        terminology_label="Consulta médica em horário normal",
        subgroup="Consultas",
        group="Consultas, visitas hospitalares ou acompanhamento",
        chapter=_CLINICAL,
        audit_lead_days=0,
    ),
]


class ProcedureCatalog(Protocol):
    """Read-only access to catalog records."""

    def records(self) -> list[CatalogRecord]: ...


class InMemoryProcedureCatalog:
    """Catalog backed by a list of records."""

    def __init__(self, records: Optional[Iterable[CatalogRecord]] = None) -> None:
        self._records: list[CatalogRecord] = list(
            PROCEDURE_CATALOG if records is None else records
        )

    def records(self) -> list[CatalogRecord]:
        return list(self._records)

    def get(self, code: str) -> Optional[CatalogRecord]:
        for record in self._records:
            if record.code == code:
                return record
        return None

    def add(self, record: CatalogRecord) -> None:
        if self.get(record.code) is not None:
            raise ValueError(f"Duplicate catalog code: {record.code}")
        self._records.append(record)
        logger.debug("Catalog record added: %s", record.code)
