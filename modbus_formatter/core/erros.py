"""
erros.py

Exceções do formatter. Ambas invalidam o lote inteiro: a transformação
não isola registros individualmente.
"""


class MalformedValueError(ValueError):
    """
    O `value` de um registro não representa uma palavra de registro válida:
    não é inteiro base 10, está fora da faixa de 32 bits com sinal, não cabe
    em 16 bits no modo com preenchimento, ou a concatenação das palavras
    passa de 32 bits.
    """

    def __init__(self, mensagem: str, parametro: str = "", valor: str = ""):
        super().__init__(mensagem)
        self.parametro = parametro
        self.valor = valor


class InvalidPayloadError(ValueError):
    """
    Corpo da mensagem não é JSON, não é uma lista, ou algum item não segue
    o schema RawRecord.
    """
