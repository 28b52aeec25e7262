"""Portuguese (``pt``) failure messages."""

from __future__ import annotations

from bucketify.errors import FailureKind

MESSAGES: dict[FailureKind, str] = {
    FailureKind.NO_PERMISSIONS: "Não há permissão para realizar esta ação",
    FailureKind.NO_INTERNET_CONNECTION: (
        "Sem conexão com a internet. Por favor, verifique sua conexão e tente novamente"
    ),
    FailureKind.UPLOAD_FILE: (
        "Erro ao carregar o arquivo. Por favor, tente novamente mais tarde"
    ),
    FailureKind.REMOVE_FILE: (
        "Erro ao excluir o arquivo. Por favor, tente novamente mais tarde"
    ),
    FailureKind.UPDATE_FILE: (
        "Erro ao atualizar o arquivo. Por favor, tente novamente mais tarde"
    ),
    FailureKind.INVALID_URL_FILE: "A URL do arquivo não é válida",
    FailureKind.IMAGE_COMPRESSION: (
        "Não foi possível processar a imagem. Por favor, tente outra imagem"
    ),
    FailureKind.FORMAT: (
        "Formato de arquivo não suportado. Por favor, use uma imagem JPG, PNG, WEBP ou HEIC"
    ),
    FailureKind.SERVER: "Erro no servidor. Por favor, tente novamente mais tarde",
}
