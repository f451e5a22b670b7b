"""
Prompt de limpeza de texto extraído de PDFs de cursinho.
"""

CLEANUP_SYSTEM_PROMPT = (
    "Você é um organizador de material didático para concursos públicos brasileiros. "
    "Responda apenas com o texto limpo, sem comentários."
)

CLEANUP_PROMPT_TEMPLATE = """Analise o texto abaixo extraído de um PDF e retorne APENAS o conteúdo educacional limpo e estruturado.

=== REMOVA COMPLETAMENTE ===
- Sumários e índices (linhas com "....", "......1", "......25" etc)
- Nome do cursinho ou editora, endereços de site ("www.")
- Avisos de copyright, licença e reprodução proibida
- "O conteúdo deste livro é licenciado para [NOME]"
- Rodapés: "X de Y", "2 de 77", números de página isolados
- Biografia do professor (doutor, mestre, lattes.cnpq etc)
- Apresentação do curso e cabeçalhos repetidos de capítulo

=== CORRIJA ===
- Palavras com letras separadas: "Direi To Tribu Tário" → "Direito Tributário"
- Palavras coladas: "vocêJáouviu" → "você já ouviu"
- Maiúsculas intercaladas: "PRiNCÍPiOS" → "Princípios"

=== MANTENHA ===
- TODO o conteúdo jurídico, técnico e educacional
- Artigos de lei, definições, conceitos e exemplos
- Estrutura de tópicos, listas e subtópicos

NÃO resuma. NÃO adicione texto. NÃO explique. Retorne APENAS o texto limpo.

TEXTO:
{text}"""


def build_cleanup_prompt(text: str) -> str:
    return CLEANUP_PROMPT_TEMPLATE.format(text=text)
