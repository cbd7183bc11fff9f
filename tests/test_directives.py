from treeplug.compiler.directives import extract_directives, parse_directive


def test_source_without_directives_is_unchanged():
    source = "x = 1\ny = 2\n"
    scan = extract_directives(source)
    assert scan.references == []
    assert scan.body == source
    assert scan.line_offset == 0


def test_leading_directives_are_collected_and_stripped():
    source = '#r "helpers.py"\n#r   json  \n\nimport json\n#r ignored\n'
    scan = extract_directives(source)
    assert scan.references == ["helpers.py", "json"]
    assert scan.body == "import json\n#r ignored\n"
    assert scan.line_offset == 3


def test_blank_lines_before_directives_are_skipped():
    scan = extract_directives("\n   \n#r foo\nx = 1")
    assert scan.references == ["foo"]
    assert scan.body == "x = 1"
    assert scan.line_offset == 3


def test_directive_after_code_is_not_a_directive():
    source = "x = 1\n#r foo\n"
    scan = extract_directives(source)
    assert scan.references == []
    assert scan.body == source


def test_indented_marker_ends_the_scan():
    scan = extract_directives("  #r foo\n#r bar\n")
    assert scan.references == []
    assert scan.line_offset == 0


def test_only_directives_leaves_empty_body():
    scan = extract_directives("#r a\n#r b")
    assert scan.references == ["a", "b"]
    assert scan.body == ""
    assert scan.line_offset == 2


def test_windows_line_endings():
    scan = extract_directives('#r "a.py"\r\nx = 1\r\n')
    assert scan.references == ["a.py"]
    assert scan.body == "x = 1\r\n"


def test_parse_directive():
    assert parse_directive('#r"lib.py"') == "lib.py"
    assert parse_directive("#r  lib ") == "lib"
    assert parse_directive("# r lib") is None
    assert parse_directive("import lib") is None


def test_form_feed_does_not_end_a_line():
    scan = extract_directives("\x0c\n#r a\x0c\nx = 1\x0c\n")
    assert scan.references == ["a"]
    assert scan.line_offset == 2
    assert scan.body == "x = 1\x0c\n"
