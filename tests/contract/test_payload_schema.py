"""
Formato do payload consumido pelo formulário do frontend.
Todas as chaves sempre presentes, sempre string, nunca None.
"""
import re

import pytest

from contract_pipeline.core.extractor import extract
from contract_pipeline.core.validators import is_canonical_cnpj, validate_contract_fields
from contract_pipeline.schema.models import Contract, ContractStatus, ExtractedFields

pytestmark = pytest.mark.contract

CAMPOS = {"empresa", "cnpj_empresa", "condominio", "cnpj_condominio", "valor", "data_assinatura"}
ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


@pytest.fixture(scope="module")
def textos():
    return [
        "",
        "Proposta sem dados",
        "Condomínio Jardim das Flores ... CNPJ 11.222.333/0001-44 ... "
        "Empresa: ACME Serviços Ltda ... CNPJ 55.666.777/0001-88 ... R$ 8.500,00 ... 12/06/2024",
        "CLIENTE: Residencial Lago Azul\nCNPJ 12345678000190\nValor R$ 900,00 em 1/2/2025",
        "Contratada: Beta Ltda  CNPJ 98 765 432 0001 10\nTotal 3.200,50",
    ]


def test_payload_sempre_completo(textos):
    for texto in textos:
        payload = extract(texto).model_dump()
        assert set(payload) == CAMPOS
        assert all(isinstance(v, str) for v in payload.values())


def test_cnpjs_extraidos_sao_canonicos(textos):
    for texto in textos:
        payload = extract(texto)
        for cnpj in (payload.cnpj_empresa, payload.cnpj_condominio):
            assert cnpj == "" or is_canonical_cnpj(cnpj)


def test_data_extraida_e_iso(textos):
    for texto in textos:
        data = extract(texto).data_assinatura
        assert data == "" or ISO_DATE.match(data)


def test_payload_completo_passa_na_validacao(textos):
    payload = extract(textos[2])
    assert validate_contract_fields(payload.model_dump()) == []


def test_payload_json_roundtrip():
    payload = ExtractedFields(condominio="Jardim das Flores", valor="8.500,00")
    assert ExtractedFields.model_validate_json(payload.model_dump_json()) == payload


def test_contract_aceita_linha_do_supabase():
    row = {
        "id": "7b1c2f0e-0000-4000-8000-000000000001",
        "cnpj_empresa": None,
        "condominio": "Jardim das Flores",
        "cnpj_condominio": "11.222.333/0001-44",
        "valor": "8.500,00",
        "data_assinatura": "2024-06-12",
        "status": "generated",
        "pdf_url": "https://x.supabase.co/storage/v1/object/public/contracts-pdfs/a.pdf",
        "created_at": "2024-06-12T10:00:00.123456+00:00",
    }
    contract = Contract(**row)

    assert contract.empresa == ""
    assert contract.cnpj_empresa == ""
    assert contract.status == ContractStatus.GENERATED
    assert contract.created_at.year == 2024
