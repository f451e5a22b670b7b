"""
Prompt de extração estruturada de editais.
"""

NOTICE_SYSTEM_PROMPT = (
    "Você é um especialista em análise de editais de concursos públicos brasileiros. "
    "Responda somente com JSON válido."
)

NOTICE_PROMPT_TEMPLATE = """Analise o edital abaixo e extraia as informações estruturadas em JSON válido.

EDITAL:
{text}

Retorne APENAS o JSON, sem texto adicional, seguindo EXATAMENTE este schema:
{{
  "banca": "nome da banca examinadora",
  "orgao": "órgão público",
  "cargo": "cargo específico",
  "editalNumero": "número do edital",
  "dataPublicacao": "YYYY-MM-DD ou null",
  "dataProva": "YYYY-MM-DD ou null",
  "salario": número ou null,
  "vagas": número inteiro ou null,
  "totalQuestoes": número inteiro,
  "disciplinas": [
    {{
      "nome": "nome exato da disciplina",
      "peso": porcentagem como decimal 0-1,
      "numQuestoes": número de questões,
      "topicos": ["topico1", "topico2"]
    }}
  ]
}}

Regras:
- Se não encontrar algum campo, use null
- Nomes das disciplinas em português
- Tópicos: extraia os itens do programa/conteúdo programático
- Peso: calcule como numQuestoes/totalQuestoes"""


def build_notice_prompt(text: str) -> str:
    return NOTICE_PROMPT_TEMPLATE.format(text=text)
