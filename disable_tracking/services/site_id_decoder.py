"""
Site identifier decoding for tracking requests.
An alternative obfuscation scheme plugs in through SITE_ID_DECODER.
"""
import importlib

from ..errors import DecodeError


class SiteIdDecoder:
    """Turns the raw identifier of a tracking request into a site id."""

    def decode(self, token: str) -> int:
        raise NotImplementedError


class IntegerSiteIdDecoder(SiteIdDecoder):
    """
    Plain positive decimal ids.

    Examples:
        "7" -> 7
        " 12 " -> 12
        "12abc", "-3", "0", "" -> DecodeError
    """

    def decode(self, token: str) -> int:
        value = (token or "").strip()
        if not (value.isascii() and value.isdigit()):
            raise DecodeError(token)
        site_id = int(value)
        if site_id <= 0:
            raise DecodeError(token)
        return site_id


def load_decoder(dotted_path: str) -> SiteIdDecoder:
    """Instantiate a decoder class given as "package.module.ClassName"."""
    module_path, _, class_name = dotted_path.rpartition(".")
    if not module_path:
        raise ValueError(f"Invalid decoder path: {dotted_path}")
    module = importlib.import_module(module_path)
    decoder = getattr(module, class_name)()
    if not hasattr(decoder, "decode"):
        raise TypeError(f"{dotted_path} does not provide decode()")
    return decoder
