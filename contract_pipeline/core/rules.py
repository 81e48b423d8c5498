"""
Tabelas de regras da extração.

Palavras-chave por papel e padrões de rótulo por campo ficam aqui,
fora do fluxo de controle do extrator. Para aceitar uma nova variante
de rótulo basta acrescentar um padrão à lista correspondente.
"""
import re
from dataclasses import dataclass, field
from typing import List, Literal, Pattern, Tuple

# PAPÉIS (desambiguação de CNPJ por contexto)

ENTITY_KEYWORDS: Tuple[str, ...] = ("condomínio", "condominio", "contratante", "cliente")
COMPANY_KEYWORDS: Tuple[str, ...] = ("empresa", "prestadora", "contratada", "fornecedor")

CONTEXT_WINDOW = 100

# PADRÕES DE FORMATO

# Separadores opcionais entre os grupos; o extrator re-renderiza no formato canônico
CNPJ_PATTERN = re.compile(r'(?<!\d)\d{2}[./\- ]?\d{3}[./\- ]?\d{3}[./\- ]?\d{4}[./\- ]?\d{2}(?!\d)')
CNPJ_CANONICAL_PATTERN = re.compile(r'^\d{2}\.\d{3}\.\d{3}/\d{4}-\d{2}$')

MONEY_PATTERN = re.compile(
    r'(?P<marker>R\$\s*)?'
    r'(?<![\d.,/\-])'
    r'(?P<number>(?:\d{1,3}(?:[.,]\d{3})+|\d+)(?:[.,]\d{2})?)'
    r'(?![\d/\-]|[.,]\d)'
)

DATE_PATTERN = re.compile(r'(?<!\d)(\d{1,2})[/\-.](\d{1,2})[/\-.](\d{4})(?!\d)')

# PADRÕES DE NOME (ordem = prioridade)

# Nome termina em: quebra de linha, vírgula, ponto, 2+ espaços ou "CNPJ"
_NAME = r'(?P<name>.*?)(?=\n|,|\.|\s{2,}|CNPJ|$)'

ENTITY_NAME_PATTERNS: List[Pattern] = [
    re.compile(r'\bCondom[íi]nio(?:[ \t]*:[ \t]*|[ \t]+)' + _NAME, re.IGNORECASE | re.MULTILINE),
    re.compile(r'\bContratante[ \t]*:[ \t]*' + _NAME, re.IGNORECASE | re.MULTILINE),
    re.compile(r'\bCliente[ \t]*:[ \t]*' + _NAME, re.IGNORECASE | re.MULTILINE),
]

COMPANY_NAME_PATTERNS: List[Pattern] = [
    re.compile(r'\b(?:Empresa|Raz[ãa]o[ \t]+Social)[ \t]*:[ \t]*' + _NAME, re.IGNORECASE | re.MULTILINE),
    re.compile(r'\bContratada[ \t]*:[ \t]*' + _NAME, re.IGNORECASE | re.MULTILINE),
    re.compile(r'\bPrestadora[ \t]*:[ \t]*' + _NAME, re.IGNORECASE | re.MULTILINE),
]


@dataclass(frozen=True)
class ExtractionPolicy:
    """
    Políticas de negócio (hipóteses não verificadas) usadas pelo extrator.

    amount_strategy:
        "largest" -> o maior valor monetário do documento é o total do contrato.
        "first"   -> o primeiro valor monetário encontrado.
    default_tax_id_slot:
        slot que recebe um CNPJ sem palavra-chave próxima.
    """
    entity_keywords: Tuple[str, ...] = ENTITY_KEYWORDS
    company_keywords: Tuple[str, ...] = COMPANY_KEYWORDS
    entity_name_patterns: List[Pattern] = field(default_factory=lambda: list(ENTITY_NAME_PATTERNS))
    company_name_patterns: List[Pattern] = field(default_factory=lambda: list(COMPANY_NAME_PATTERNS))
    context_window: int = CONTEXT_WINDOW
    amount_strategy: Literal["largest", "first"] = "largest"
    default_tax_id_slot: Literal["entity", "company"] = "entity"


DEFAULT_POLICY = ExtractionPolicy()
