import logging
import unicodedata
from decimal import Decimal
from typing import List, Optional, Pattern, Tuple

from ..schema.models import ExtractedFields
from .rules import (
    CNPJ_PATTERN,
    DATE_PATTERN,
    DEFAULT_POLICY,
    MONEY_PATTERN,
    ExtractionPolicy,
)
from .validators import format_cnpj, parse_monetary_value

logger = logging.getLogger(__name__)

INVISIBLE_REPLACEMENTS = [
    ('\xa0', ' '),
    ('\u200b', ''),
    ('\r\n', '\n'),
    ('\r', '\n'),
]


def normalize_unicode(text: str) -> str:
    """Recompõe acentos (NFC), remove caracteres invisíveis e unifica quebras de linha."""
    text = unicodedata.normalize("NFC", text or '')
    for pat, repl in INVISIBLE_REPLACEMENTS:
        text = text.replace(pat, repl)
    return text

# CNPJ

def _nearest_keyword(window: str, keywords: Tuple[str, ...], from_end: bool) -> Optional[int]:
    """Distância da palavra-chave mais próxima da borda do CNPJ (None se ausente)."""
    best = None
    for kw in keywords:
        pos = window.rfind(kw) if from_end else window.find(kw)
        if pos == -1:
            continue
        distance = len(window) - (pos + len(kw)) if from_end else pos
        if best is None or distance < best:
            best = distance
    return best


def classify_tax_id_context(before: str, after: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Optional[str]:
    """
    Decide o papel ("company" | "entity") pelo contexto de um CNPJ.

    O rótulo que antecede o número tem prioridade: vence a palavra-chave
    mais próxima no contexto anterior; só sem nenhuma usa o posterior.
    """
    before = before.lower()
    after = after.lower()

    for window, from_end in ((before, True), (after, False)):
        company = _nearest_keyword(window, policy.company_keywords, from_end)
        entity = _nearest_keyword(window, policy.entity_keywords, from_end)
        if company is None and entity is None:
            continue
        if entity is None or (company is not None and company <= entity):
            return "company"
        return "entity"

    return None


def find_tax_ids(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> Tuple[str, str]:
    """
    1. REGEX encontra CNPJs (com ou sem pontuação)
    2. Normaliza para NN.NNN.NNN/NNNN-NN
    3. Desambigua empresa x condomínio pelo contexto
    Retorna (cnpj_empresa, cnpj_condominio).
    """
    slots = {"company": "", "entity": ""}
    other = {"company": "entity", "entity": "company"}

    for m in CNPJ_PATTERN.finditer(text):
        if slots["company"] and slots["entity"]:
            break

        cnpj = format_cnpj(m.group(0))
        if not cnpj:
            continue

        before = text[max(0, m.start() - policy.context_window):m.start()]
        after = text[m.end():m.end() + policy.context_window]
        role = classify_tax_id_context(before, after, policy)

        if role and not slots[role]:
            slots[role] = cnpj
        elif not slots[policy.default_tax_id_slot]:
            slots[policy.default_tax_id_slot] = cnpj
        elif not slots[other[policy.default_tax_id_slot]]:
            slots[other[policy.default_tax_id_slot]] = cnpj

    return slots["company"], slots["entity"]

# VALOR

def find_amount_candidates(text: str) -> List[Tuple[str, Decimal]]:
    """Todos os literais monetários do texto, na ordem do documento."""
    candidates = []
    for m in MONEY_PATTERN.finditer(text):
        literal = m.group("number").strip()
        # Inteiro solto sem "R$" não é dinheiro (número de página, quantidade...)
        if not m.group("marker") and not any(sep in literal for sep in ".,"):
            continue
        value = parse_monetary_value(literal)
        if value is not None:
            candidates.append((literal, value))
    return candidates


def find_amount(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> str:
    """
    Seleciona o valor do contrato.

    Política "largest": o maior valor citado é o total (itens, descontos
    e parcelas são menores). Empate mantém a primeira ocorrência.
    """
    candidates = find_amount_candidates(text)
    if not candidates:
        return ""

    if policy.amount_strategy == "first":
        return candidates[0][0]

    best_literal, best_value = candidates[0]
    for literal, value in candidates[1:]:
        if value > best_value:
            best_literal, best_value = literal, value
    return best_literal

# DATA

def find_signature_date(text: str) -> str:
    """Primeira data D[D]/M[M]/YYYY do documento, convertida para YYYY-MM-DD."""
    m = DATE_PATTERN.search(text)
    if not m:
        return ""
    day, month, year = m.groups()
    return f"{year}-{int(month):02d}-{int(day):02d}"

# NOMES

def find_name(text: str, patterns: List[Pattern]) -> str:
    for pattern in patterns:
        for m in pattern.finditer(text):
            name = m.group("name").strip()
            if name:
                return name
    return ""


def extract(text: str, policy: ExtractionPolicy = DEFAULT_POLICY) -> ExtractedFields:
    """
    Extrator principal (heurístico, best-effort).

    Pipeline:
    1. Normaliza Unicode
    2. CNPJs com desambiguação por contexto
    3. Valor, data e nomes
    Nunca lança exceção: falhas internas degradam para campos vazios.
    """
    result = ExtractedFields()

    try:
        text = normalize_unicode(text)
    except Exception:
        logger.exception("Falha ao normalizar texto; extração abortada")
        return result

    steps = (
        ("cnpj", lambda: find_tax_ids(text, policy)),
        ("valor", lambda: find_amount(text, policy)),
        ("data_assinatura", lambda: find_signature_date(text)),
        ("condominio", lambda: find_name(text, policy.entity_name_patterns)),
        ("empresa", lambda: find_name(text, policy.company_name_patterns)),
    )

    for field_name, step in steps:
        try:
            value = step()
        except Exception:
            logger.exception("Falha na extração do campo %s", field_name)
            continue

        if field_name == "cnpj":
            result.cnpj_empresa, result.cnpj_condominio = value
        else:
            setattr(result, field_name, value)

    return result
