"""
Concursos - indexação do banco offline de PDFs e processamento de editais.

Dois fluxos compartilham as mesmas peças:
    - Indexação: crawler → extração → normalização → classificação → embedding → banco
    - Editais: upload → extração → LLM → mapeamento de disciplinas → plano de estudos
"""

__version__ = "0.1.0"
