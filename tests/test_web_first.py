"""Tests for the web-first question detector."""

import pytest

from app.core.system_prompt import PUBLIA_SYSTEM_PROMPT, WEB_FIRST_INSTRUCTION, build_instructions
from app.core.web_first import should_force_web_first


@pytest.mark.parametrize(
    "text",
    [
        "Qual o limite para dispensa de licitação em 2025?",
        "Explique o Art. 75 da Lei 14.133",
        "Como funciona o reajuste contratual em contratos de serviços contínuos com mão de obra",
        "Posso pagar R$ 50 mil sem processo? Considere o município pequeno e sem pregoeiro",
        "Preciso de uma explicação detalhada sobre a aplicação de 10 % de desconto no orçamento",
        "quais documentos",
        "Isso vale?",
    ],
)
def test_triggers(text):
    assert should_force_web_first(text) is True


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "Me explique com calma o conceito de governança pública e boas práticas para a gestão municipal",
    ],
)
def test_does_not_trigger(text):
    assert should_force_web_first(text) is False


def test_instructions_include_web_first_block_only_when_asked():
    assert build_instructions() == PUBLIA_SYSTEM_PROMPT
    assert WEB_FIRST_INSTRUCTION not in build_instructions(web_first=False)
    assert build_instructions(web_first=True).endswith(WEB_FIRST_INSTRUCTION)
