from pathlib import Path

from .models import Direction

ENCRYPTED_SUFFIX = ".encrypted"
DECRYPTED_SUFFIX = ".decrypted"


def default_output_path(source, direction: Direction) -> Path:
    """Output path the desktop tool proposes for source.

    report.pdf -> report.pdf.encrypted -> report.pdf.decrypted. A file
    without the .encrypted suffix gets .decrypted appended so the result never
    points at the source itself.
    """
    source = Path(source)
    if direction is Direction.ENCRYPT:
        return source.with_name(source.name + ENCRYPTED_SUFFIX)
    name = source.name
    if name.endswith(ENCRYPTED_SUFFIX) and len(name) > len(ENCRYPTED_SUFFIX):
        name = name[: -len(ENCRYPTED_SUFFIX)]
    return source.with_name(name + DECRYPTED_SUFFIX)
