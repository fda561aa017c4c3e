"""Role instructions and task payload builders for each phase.

Role instructions are fixed persona blocks; task payloads carry the data
of one run serialized as JSON.
"""

import json

from worker.reports.contract import SectionFinding
from worker.signals.models import CollectionContext, SignalCategory, SubjectProfile

PERSONA = """\
**IDENTIDADE:** Você é o "OrtoAudit AI", autoridade mundial em Marketing Médico.
**OBJETIVO:** Analisar os dados fornecidos e gerar um diagnóstico digital persuasivo.

**REGRAS DE OURO (METÁFORAS MÉDICAS OBRIGATÓRIAS):**
1. Site Lento (< 50) = "Paciente com mobilidade reduzida" ou "Articulação travada".
2. Site Rápido (> 90) = "Atleta de alta performance".
3. Site Inseguro = "Baixa imunidade" ou "Risco de infecção".
4. Elementos Visuais Genéricos/Sentimento Neutro = "Efeito Placebo" ou "Falta de identidade biológica".
5. Sem Reviews/Concorrência Alta = "Invisibilidade clínica" ou "Perda de território".

Dados marcados como "simulado" vieram de uma fonte indisponível: não afirme
números exatos sobre eles.
"""

SECTION_OUTPUT_RULES = """
**FORMATO DE SAÍDA:** responda apenas com um objeto JSON:
{"text": "<diagnóstico em Markdown>", "severity": "low" | "medium" | "high"}
"""

TECHNICAL_ROLE = (
    PERSONA
    + """
**TAREFA:** A Triagem (Sinais Vitais do Site). Analise a velocidade mobile,
o tempo de carregamento, os dados de usuários reais e a segurança.
Seja alarmista se a nota for baixa.
"""
    + SECTION_OUTPUT_RULES
)

BRANDING_ROLE = (
    PERSONA
    + """
**TAREFA:** Exame de Imagem & Cognitivo. Com base nos rótulos visuais e no tom
do texto do site, diga se o site passa autoridade médica real ou parece genérico.
"""
    + SECTION_OUTPUT_RULES
)

MARKET_ROLE = (
    PERSONA
    + """
**TAREFA:** Raio-X do Mercado. Compare o profissional com os concorrentes
listados. Use a frase: "Enquanto o senhor descansa, o [Nome Concorrente] está captando..."
"""
    + SECTION_OUTPUT_RULES
)

SALES_PITCH_ROLE = (
    PERSONA
    + """
**TAREFA:** Diagnóstico e Tratamento. A partir dos três laudos, escreva o
argumento de venda: uma manchete, três sintomas, o prognóstico sem tratamento
e um plano de tratamento com ações corretivas imediatas
(ex: "Cirurgia de SEO", "Implante de Conteúdo").

**FORMATO DE SAÍDA:** responda apenas com um objeto JSON:
{"headline": "...", "symptoms": ["...", "...", "..."], "prognosis": "...",
 "treatmentPlan": ["...", "..."]}
"""
)

CAMPAIGN_EXPORT_ROLE = (
    PERSONA
    + """
**TAREFA:** Prescrição (Google Ads). Crie uma campanha de pesquisa focada em
dor/cirurgia para a especialidade, pronta para importação no Google Ads Editor.

**FORMATO DE SAÍDA:** apenas CSV, com cabeçalho
Campaign,Ad Group,Keyword,Headline 1,Headline 2,Headline 3,Description,Final URL
e sem nenhum texto antes ou depois.
"""
)


def _dump(data: dict) -> str:
    return json.dumps(data, ensure_ascii=False, indent=2)


def _marker(context: CollectionContext, category: SignalCategory) -> str:
    return " (simulado)" if context[category].is_fallback else ""


def _subject(profile: SubjectProfile) -> dict:
    return {
        "nome": profile.name,
        "especialidade": profile.category,
        "cidade": profile.locality,
        "site": profile.url or "não informado",
    }


def technical_payload(profile: SubjectProfile, context: CollectionContext) -> str:
    performance = context.performance
    field_signal = context[SignalCategory.FIELD_DATA]
    field_data = context.field_data

    data = {
        "paciente": _subject(profile),
        "sinaisVitais": {
            "velocidadeMobile": performance.score,
            "lcp": performance.load_time_display,
            "origem": "PageSpeed Insights" + _marker(context, SignalCategory.PERFORMANCE),
            "diagnosticoSeguranca": context.security.display
            + _marker(context, SignalCategory.SECURITY),
            "dadosUsuariosReais": (
                dict(field_data.metrics)
                if field_data.has_data
                else field_signal.message or "indisponível"
            ),
        },
    }
    return "--- DADOS DO PACIENTE (INPUT JSON) ---\n" + _dump(data)


def branding_payload(profile: SubjectProfile, context: CollectionContext) -> str:
    labels = context.visual_labels.labels
    sentiment = context.sentiment

    data = {
        "paciente": _subject(profile),
        "exameVisual": {
            "elementosDetectados": ", ".join(labels)
            + _marker(context, SignalCategory.BRANDING_VISION),
            "analiseSentimento": (
                f"Score: {sentiment.score} (Tom {sentiment.tone})"
                + _marker(context, SignalCategory.BRANDING_TEXT)
            ),
            "magnitude": sentiment.magnitude,
        },
    }
    return "--- DADOS DO PACIENTE (INPUT JSON) ---\n" + _dump(data)


def market_payload(profile: SubjectProfile, context: CollectionContext) -> str:
    data = {
        "paciente": _subject(profile),
        "mercado": {
            "consulta": profile.market_query(),
            "concorrentesEncontrados": [
                {"nome": c.name, "nota": c.rating, "reviews": c.review_count}
                for c in context.market.competitors[:3]
            ],
            "origem": "Google Places" + _marker(context, SignalCategory.MARKET),
        },
    }
    return "--- DADOS DO PACIENTE (INPUT JSON) ---\n" + _dump(data)


def sales_pitch_payload(
    profile: SubjectProfile,
    technical: SectionFinding,
    branding: SectionFinding,
    market: SectionFinding,
) -> str:
    return "\n\n".join(
        [
            f"Paciente: {profile.name} ({profile.category}, {profile.locality})",
            "## Laudo Técnico\n" + technical.narrative_text,
            "## Laudo de Marca\n" + branding.narrative_text,
            "## Laudo de Mercado\n" + market.narrative_text,
        ]
    )


def campaign_export_payload(
    profile: SubjectProfile,
    technical: SectionFinding,
    market: SectionFinding,
) -> str:
    return "\n\n".join(
        [
            f"Especialidade: {profile.category}. Cidade: {profile.locality}.",
            f"URL final: {profile.url or 'https://example.com'}",
            "## Laudo Técnico\n" + technical.narrative_text,
            "## Laudo de Mercado\n" + market.narrative_text,
        ]
    )
