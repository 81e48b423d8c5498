import re
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Mapping, Optional

from ..schema.models import ValidationIssue
from .rules import CNPJ_CANONICAL_PATTERN

# Milhar em grupos de 3 e no máximo 2 casas decimais ("1,2,3" não é valor)
MONETARY_SHAPE = re.compile(r'^(?:R\$)?\s?(?:\d{1,3}(?:[.,]\d{3})+|\d+)(?:[.,]\d{2})?$')
DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y")

MESES = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)

# CNPJ

def format_cnpj(value: str) -> Optional[str]:
    """
    Re-renderiza qualquer grafia de CNPJ em NN.NNN.NNN/NNNN-NN.
    Retorna None se não houver exatamente 14 dígitos.
    """
    digits = re.sub(r'\D', '', value or '')
    if len(digits) != 14:
        return None
    return f"{digits[:2]}.{digits[2:5]}.{digits[5:8]}/{digits[8:12]}-{digits[12:]}"


def is_canonical_cnpj(value: str) -> bool:
    return bool(CNPJ_CANONICAL_PATTERN.match(value or ''))


def cnpj_validator(cnpj: str) -> Dict[str, Any]: ##     VALIDAÇÃO DE CNPJ COM CHECKSUM
    """
    Valida CNPJ com checksum
    Retorna dict com status e metadados.
    """
    cnpj_limpo = re.sub(r'\D', '', cnpj or '')

    if len(cnpj_limpo) != 14:
        return {
            "valido": False,
            "erro": f"CNPJ deve ter 14 dígitos (recebido {len(cnpj_limpo)})",
        }

    if cnpj_limpo == cnpj_limpo[0] * 14:
        return {
            "valido": False,
            "erro": "CNPJ com todos dígitos repetidos",
        }

    # Checksum (algoritmo oficial da Receita)
    def calcular_digito(base: str, pesos: List[int]) -> int:
        soma = sum(int(d) * p for d, p in zip(base, pesos))
        resto = soma % 11
        return 0 if resto < 2 else 11 - resto

    pesos_1 = [5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    dv1 = calcular_digito(cnpj_limpo[:12], pesos_1)

    if int(cnpj_limpo[12]) != dv1:
        return {
            "valido": False,
            "erro": f"Dígito verificador 1 incorreto (esperado {dv1})",
        }

    pesos_2 = [6, 5, 4, 3, 2, 9, 8, 7, 6, 5, 4, 3, 2]
    dv2 = calcular_digito(cnpj_limpo[:13], pesos_2)

    if int(cnpj_limpo[13]) != dv2:
        return {
            "valido": False,
            "erro": f"Dígito verificador 2 incorreto (esperado {dv2})",
        }

    return {
        "valido": True,
        "cnpj_limpo": cnpj_limpo,
        "cnpj_formatado": format_cnpj(cnpj_limpo),
        "tipo": "matriz" if cnpj_limpo[8:12] == "0001" else "filial",
    }

# VALORES MONETÁRIOS

def parse_monetary_value(valor: str) -> Optional[Decimal]:
    """
    Converte um literal monetário em Decimal.

    O separador mais à direita é o decimal quando seguido de exatamente
    2 dígitos ("1.200,50", "1,200.50"); caso contrário é milhar ("1.200").
    """
    valor_limpo = re.sub(r'[^\d.,]', '', (valor or '').replace('R$', ''))
    if not re.search(r'\d', valor_limpo):
        return None

    last_sep = max(valor_limpo.rfind('.'), valor_limpo.rfind(','))
    if last_sep != -1 and len(valor_limpo) - last_sep - 1 == 2:
        inteiro = re.sub(r'[.,]', '', valor_limpo[:last_sep])
        numero = f"{inteiro or '0'}.{valor_limpo[last_sep + 1:]}"
    else:
        numero = re.sub(r'[.,]', '', valor_limpo)

    try:
        return Decimal(numero)
    except (InvalidOperation, ValueError):
        return None


def monetary_value_validator(valor: str) -> Dict[str, Any]:
    """
    Valida literal monetário vindo do formulário.

    RETURNS:
        dict com validação e metadados
    """
    original_value = valor
    valor = (valor or '').strip()

    if not valor:
        return {"valido": False, "erro": "Valor é obrigatório"}

    if not MONETARY_SHAPE.match(valor) or not re.search(r'\d', valor):
        return {"valido": False, "erro": f"Formato de valor inválido ({original_value})"}

    valor_decimal = parse_monetary_value(valor)
    if valor_decimal is None:
        return {"valido": False, "erro": f"Formato inválido: não é um número válido ({original_value})"}

    return {
        "valido": True,
        "valor_decimal": valor_decimal,
        "valor_formatado": format_currency(valor),
    }


def format_currency(valor: str) -> str:
    """Literal monetário -> "R$ X.XXX,XX" (vazio vira "R$ 0,00")."""
    valor_decimal = parse_monetary_value(valor)
    if valor_decimal is None:
        return "R$ 0,00"
    return f"R$ {valor_decimal:,.2f}".replace(',', 'X').replace('.', ',').replace('X', '.')

# DATAS

def parse_signature_date(value: str) -> Optional[date]:
    """Aceita YYYY-MM-DD ou DD/MM/YYYY; None se não for uma data real."""
    value = (value or '').strip()
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return None


def format_date(value: str) -> str:
    """ISO -> "12 de junho de 2024". Mantém o texto original se não for data."""
    parsed = parse_signature_date(value)
    if parsed is None:
        return value or ""
    return f"{parsed.day:02d} de {MESES[parsed.month - 1]} de {parsed.year}"

# VALIDAÇÃO DO CONTRATO

def validate_contract_fields(fields: Mapping[str, Any], check_digits: bool = False) -> List[ValidationIssue]:
    """
    Valida campos extraídos/editados antes de renderizar e persistir.
    Coleta todos os problemas; nunca para no primeiro.
    """
    issues: List[ValidationIssue] = []

    def get(name: str) -> str:
        return str(fields.get(name) or '').strip()

    if not get("condominio"):
        issues.append(ValidationIssue(field="condominio", message="Nome do condomínio é obrigatório"))

    for name, required in (("cnpj_condominio", True), ("cnpj_empresa", False)):
        value = get(name)
        if not value:
            if required:
                issues.append(ValidationIssue(field=name, message="CNPJ é obrigatório"))
            continue
        if not is_canonical_cnpj(value):
            issues.append(ValidationIssue(field=name, message="CNPJ deve estar no formato XX.XXX.XXX/XXXX-XX"))
        elif check_digits:
            result = cnpj_validator(value)
            if not result["valido"]:
                issues.append(ValidationIssue(field=name, message=result["erro"]))

    valor = monetary_value_validator(get("valor"))
    if not valor["valido"]:
        issues.append(ValidationIssue(field="valor", message=valor["erro"]))

    data = get("data_assinatura")
    if not data:
        issues.append(ValidationIssue(field="data_assinatura", message="Data de assinatura é obrigatória"))
    elif parse_signature_date(data) is None:
        issues.append(ValidationIssue(field="data_assinatura", message="Data inválida"))

    return issues
