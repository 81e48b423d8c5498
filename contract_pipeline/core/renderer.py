"""
Renderização do contrato: template HTML (Jinja2) -> PDF (Chromium headless).

Os valores dos campos vêm de documentos enviados pelo usuário e são
tratados como entrada hostil: todos passam por escape_html antes do template.
"""
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from playwright.sync_api import sync_playwright

from .errors import RenderError
from .validators import format_currency, format_date

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"
CONTRACT_TEMPLATE = "contract_template.html"

HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}

CONTRACT_FIELDS = ("empresa", "cnpj_empresa", "condominio", "cnpj_condominio", "valor", "data_assinatura")


def escape_html(value: Any) -> str:
    if value is None:
        return ""
    return "".join(HTML_ESCAPES.get(ch, ch) for ch in str(value))


def sanitize_fields(fields: Mapping[str, Any]) -> Dict[str, str]:
    return {name: escape_html(fields.get(name)) for name in CONTRACT_FIELDS}


class ContractRenderer:
    def __init__(
        self,
        templates_dir: Path = TEMPLATES_DIR,
        template_name: str = CONTRACT_TEMPLATE,
        pdf_format: str = "A4",
        margin_mm: int = 20,
        timeout_ms: int = 30000,
    ):
        # autoescape desligado: os valores já chegam escapados por sanitize_fields
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            autoescape=False,
            undefined=StrictUndefined,
        )
        self.template_name = template_name
        self.pdf_format = pdf_format
        self.margin = f"{margin_mm}mm"
        self.timeout_ms = timeout_ms

    def render_html(self, fields: Mapping[str, Any]) -> str:
        template = self.env.get_template(self.template_name)
        return template.render(
            contract=sanitize_fields(fields),
            format_currency=format_currency,
            format_date=format_date,
        )

    def render_pdf(self, html: str) -> bytes:
        """
        Abre o Chromium, imprime o HTML e fecha página e navegador
        em qualquer caminho de saída.
        """
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=True,
                    args=["--no-sandbox", "--disable-setuid-sandbox"],
                )
                try:
                    page = browser.new_page()
                    try:
                        page.set_content(html, wait_until="networkidle", timeout=self.timeout_ms)
                        return page.pdf(
                            format=self.pdf_format,
                            margin={"top": self.margin, "right": self.margin,
                                    "bottom": self.margin, "left": self.margin},
                            print_background=True,
                        )
                    finally:
                        page.close()
                finally:
                    browser.close()
        except Exception as e:
            logger.exception("Falha ao renderizar o PDF do contrato")
            raise RenderError(f"Falha ao renderizar o PDF: {e}") from e

    def render(self, fields: Mapping[str, Any]) -> bytes:
        return self.render_pdf(self.render_html(fields))


def build_renderer(settings: Optional[Any] = None) -> ContractRenderer:
    if settings is None:
        return ContractRenderer()
    return ContractRenderer(
        pdf_format=settings.PDF_FORMAT,
        margin_mm=settings.PDF_MARGIN_MM,
        timeout_ms=settings.RENDER_TIMEOUT_MS,
    )
