"""Spanish (``es``) failure messages."""

from __future__ import annotations

from bucketify.errors import FailureKind

MESSAGES: dict[FailureKind, str] = {
    FailureKind.NO_PERMISSIONS: "No tienes permiso para realizar esta acción",
    FailureKind.NO_INTERNET_CONNECTION: (
        "Sin conexión a internet. Por favor, compruebe su conexión e inténtelo de nuevo"
    ),
    FailureKind.UPLOAD_FILE: (
        "Error al subir el archivo. Por favor, inténtelo de nuevo más tarde"
    ),
    FailureKind.REMOVE_FILE: (
        "Error al eliminar el archivo. Por favor, inténtelo de nuevo más tarde"
    ),
    FailureKind.UPDATE_FILE: (
        "Error al actualizar el archivo. Por favor, inténtelo de nuevo más tarde"
    ),
    FailureKind.INVALID_URL_FILE: "La URL del archivo no es válida",
    FailureKind.IMAGE_COMPRESSION: (
        "No se pudo procesar la imagen. Por favor, pruebe con otra imagen"
    ),
    FailureKind.FORMAT: (
        "Formato de archivo no soportado. Por favor, use una imagen JPG, PNG, WEBP o HEIC"
    ),
    FailureKind.SERVER: "Error del servidor. Por favor, inténtelo de nuevo más tarde",
}
