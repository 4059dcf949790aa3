"""audiocheck: forensic and quality analysis of decoded audio.

Answers whether a file is genuinely high resolution, whether it was
transcoded from a lossy source, how loud it is under BS.1770, how much
dynamic range it keeps and how wide its stereo image is.
"""

__version__ = "0.1.0"
