import pytest

from swkit.exiftool import camel_case, parse_output

PUTTY_OUTPUT = """ExifTool Version Number         : 12.40
File Name                       : putty.exe
Directory                       : ../../testdata
File Size                       : 1047 KiB
File Modification Date/Time     : 2022:01:01 10:00:00+00:00
File Permissions                : -rw-r--r--
File Type                       : Win32 EXE
File Type Extension             : exe
MIME Type                       : application/octet-stream
"""

LS_OUTPUT = """File Name                       : ls
File Type                       : ELF shared library
"""


@pytest.mark.parametrize(
    "output, expected",
    [(PUTTY_OUTPUT, "Win32 EXE"), (LS_OUTPUT, "ELF shared library")],
)
def test_file_type(output, expected):
    assert parse_output(output)["FileType"] == expected


def test_ignored_tags_and_multi_colon_lines():
    result = parse_output(PUTTY_OUTPUT)
    assert "FileName" not in result
    assert "Directory" not in result
    assert "FilePermissions" not in result
    assert "FileModificationDate/Time" not in result
    assert result["MimeType"] == "application/octet-stream"
    assert result["ExiftoolVersionNumber"] == "12.40"
    assert result["FileTypeExtension"] == "exe"


def test_file_not_found():
    assert parse_output("File not found\n") is None


def test_empty_output():
    assert parse_output("") == {}


@pytest.mark.parametrize(
    "text, expected",
    [
        ("File Type", "FileType"),
        ("  File Type  ", "FileType"),
        ("MIME Type", "MimeType"),
        ("file_type-name", "FileTypeName"),
        ("ExifTool Version Number", "ExiftoolVersionNumber"),
        ("", ""),
        ("   ", ""),
    ],
)
def test_camel_case(text, expected):
    assert camel_case(text) == expected