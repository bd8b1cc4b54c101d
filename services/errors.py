class BitacoraError(Exception):
    """Base class for every error this backend reports to the caller."""

    status_code = 500
    public_message = "Error interno"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.public_message)
        self.message = message or self.public_message


class UpstreamStorageError(BitacoraError):
    """Airtable answered with a non-2xx status."""

    public_message = "Error al comunicarse con Airtable."

    def __init__(self, message: str | None = None, status: int | None = None, body=None):
        super().__init__(message)
        self.status = status
        self.body = body


class SupervisorNotFound(BitacoraError):
    status_code = 404
    public_message = "Supervisor no encontrado."


class ReporteNotFound(BitacoraError):
    status_code = 404
    public_message = "Reporte no encontrado."


class MediaUploadError(BitacoraError):
    """Cloudinary rejected the upload, or is not configured."""

    status_code = 502
    public_message = "Error al subir imagen a Cloudinary"


class SubmissionValidationError(BitacoraError):
    """One or more required fields are missing; `errors` holds every message."""

    status_code = 400
    public_message = "Revisa tu formulario"

    def __init__(self, errors: list[str]):
        super().__init__(self.public_message)
        self.errors = list(errors)
