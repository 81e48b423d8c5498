from decimal import Decimal

import pytest

from contract_pipeline.core.validators import (
    cnpj_validator,
    format_cnpj,
    format_currency,
    format_date,
    is_canonical_cnpj,
    monetary_value_validator,
    parse_monetary_value,
    parse_signature_date,
    validate_contract_fields,
)

# CNPJ

@pytest.mark.validation
@pytest.mark.parametrize(
    "cnpj_input,esperado",
    [
        ("12345678000190", "12.345.678/0001-90"),
        ("12.345.678/0001-90", "12.345.678/0001-90"),
        ("12 345 678 0001 90", "12.345.678/0001-90"),
        ("12.345.678.0001.90", "12.345.678/0001-90"),
        ("1234567800019", None),
        ("", None),
    ],
)
def test_format_cnpj(cnpj_input, esperado):
    assert format_cnpj(cnpj_input) == esperado


@pytest.mark.validation
def test_format_cnpj_e_idempotente():
    canonico = "11.222.333/0001-44"
    assert is_canonical_cnpj(canonico)
    assert format_cnpj(canonico) == canonico


@pytest.mark.validation
@pytest.mark.parametrize(
    "cnpj_input,esperado",
    [
        ("12.345.678/0001-00", "checksum"),
        ("11.222.333/0001-44", "checksum"),
        ("123456780001", "length"),
        ("11.111.111/1111-11", "repetition"),
    ],
)
def test_cnpj_invalid_checksum(cnpj_input, esperado): ##  falha de checksum
    result = cnpj_validator(cnpj_input)

    assert result["valido"] is False

    erro_lower = result["erro"].lower()
    if esperado == "checksum":
        assert any(term in erro_lower for term in ("dígito", "verificador"))
    elif esperado == "length":
        assert "14 dígitos" in result["erro"]
    elif esperado == "repetition":
        assert "repetidos" in erro_lower


@pytest.mark.validation
@pytest.mark.parametrize("cnpj", ["04.252.011/0001-10", "11.222.333/0001-81"])
def test_cnpj_valid_example(cnpj):
    result = cnpj_validator(cnpj)

    assert result["valido"] is True
    assert result["cnpj_formatado"] == cnpj
    assert result["tipo"] == "matriz"

# VALORES

@pytest.mark.validation
@pytest.mark.parametrize(
    "valor,esperado",
    [
        ("1.200,00", Decimal("1200.00")),
        ("1,200.50", Decimal("1200.50")),
        ("1.200", Decimal("1200")),
        ("R$ 15.000,50", Decimal("15000.50")),
        ("8500", Decimal("8500")),
        ("0,99", Decimal("0.99")),
        ("abc", None),
        ("", None),
    ],
)
def test_parse_monetary_value(valor, esperado):
    assert parse_monetary_value(valor) == esperado


@pytest.mark.validation
@pytest.mark.parametrize(
    "valor,valido",
    [
        ("8.500,00", True),
        ("R$ 8.500,00", True),
        ("1500", True),
        ("", False),
        ("   ", False),
        ("oito mil", False),
        ("R$", False),
        ("-100,00", False),
        ("1,2,3", False),
        ("12.34.567", False),
        ("1.2345", False),
        ("1500,5", False),
        ("1,200.50", True),
    ],
)
def test_monetary_value_validator(valor, valido):
    result = monetary_value_validator(valor)
    assert result["valido"] is valido
    if not valido:
        assert result["erro"]


@pytest.mark.validation
@pytest.mark.parametrize(
    "valor,esperado",
    [
        ("8.500,00", "R$ 8.500,00"),
        ("1500", "R$ 1.500,00"),
        ("1234567,89", "R$ 1.234.567,89"),
        ("", "R$ 0,00"),
    ],
)
def test_format_currency(valor, esperado):
    assert format_currency(valor) == esperado

# DATAS

@pytest.mark.validation
@pytest.mark.parametrize(
    "valor,esperado",
    [
        ("2024-06-12", "2024-06-12"),
        ("12/06/2024", "2024-06-12"),
        ("31/02/2024", None),
        ("2024-02-31", None),
        ("amanhã", None),
        ("", None),
    ],
)
def test_parse_signature_date(valor, esperado):
    parsed = parse_signature_date(valor)
    assert (parsed.isoformat() if parsed else None) == esperado


@pytest.mark.validation
def test_format_date_por_extenso():
    assert format_date("2024-06-12") == "12 de junho de 2024"
    assert format_date("01/03/2025") == "01 de março de 2025"
    assert format_date("sem data") == "sem data"

# CAMPOS DO CONTRATO

def _fields(**overrides):
    base = {
        "empresa": "ACME Serviços Ltda",
        "cnpj_empresa": "55.666.777/0001-88",
        "condominio": "Jardim das Flores",
        "cnpj_condominio": "11.222.333/0001-44",
        "valor": "8.500,00",
        "data_assinatura": "2024-06-12",
    }
    base.update(overrides)
    return base


def _issue_fields(issues):
    return {issue.field for issue in issues}


@pytest.mark.validation
def test_campos_validos_sem_problemas():
    assert validate_contract_fields(_fields()) == []


@pytest.mark.validation
def test_empresa_e_cnpj_empresa_sao_opcionais():
    assert validate_contract_fields(_fields(empresa="", cnpj_empresa="")) == []


@pytest.mark.validation
def test_valor_vazio_e_rejeitado():
    issues = validate_contract_fields(_fields(valor=""))
    assert _issue_fields(issues) == {"valor"}


@pytest.mark.validation
@pytest.mark.parametrize("data", ["31/02/2024", "2024-02-31", "12/13/2024"])
def test_data_inexistente_e_rejeitada(data):
    issues = validate_contract_fields(_fields(data_assinatura=data))
    assert [(i.field, i.message) for i in issues] == [("data_assinatura", "Data inválida")]


@pytest.mark.validation
def test_cnpj_fora_do_formato_canonico():
    issues = validate_contract_fields(_fields(cnpj_condominio="11222333000144", cnpj_empresa="55.666.777/000188"))
    assert _issue_fields(issues) == {"cnpj_condominio", "cnpj_empresa"}


@pytest.mark.validation
def test_coleta_todos_os_problemas():
    issues = validate_contract_fields({})
    assert _issue_fields(issues) == {"condominio", "cnpj_condominio", "valor", "data_assinatura"}


@pytest.mark.validation
def test_checksum_so_quando_habilitado():
    fields = _fields(cnpj_empresa="04.252.011/0001-10")

    assert validate_contract_fields(fields) == []

    issues = validate_contract_fields(fields, check_digits=True)
    assert _issue_fields(issues) == {"cnpj_condominio"}

    fields["cnpj_condominio"] = "11.222.333/0001-81"
    assert validate_contract_fields(fields, check_digits=True) == []


@pytest.mark.validation
def test_valor_com_agrupamento_invalido_e_rejeitado():
    issues = validate_contract_fields(_fields(valor="1,2,3"))
    assert [i.field for i in issues] == ["valor"]
