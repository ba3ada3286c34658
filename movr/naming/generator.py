from typing import Optional

from .. import config


def generate_filename(description: str,
                      request_id: str,
                      company,
                      sequence: str,
                      retouched: bool,
                      image_type,
                      extension: str) -> Optional[str]:
    """
    Builds the canonical filename for an asset.

    Layout: IMG_<company>_PH_<type abbr>_<request id>_<item>[_<seq>][_RT].<ext>

    The sequence is only included for image types that use one (lifestyle).
    Returns None when the description or request ID is missing; a partial
    name is never produced.
    """
    if not description or not request_id:
        return None

    components = [
        config.FILENAME_PREFIX,
        company.code,
        config.SUPPLIER_TOKEN,
        image_type.abbreviation,
        request_id,
        description,
    ]

    if image_type.uses_sequence and sequence:
        components.append(sequence)

    if retouched:
        components.append(config.RETOUCHED_MARKER)

    basename = config.FILENAME_SEPARATOR.join(components)
    ext = (extension or "").lstrip(".")
    return f"{basename}.{ext}" if ext else basename
