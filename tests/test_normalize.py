import pytest

from coderunner.evaluator import normalize_output, outputs_match


@pytest.mark.parametrize('raw', [
    '',
    'x',
    '  a  \r\n\r\n b\rc \n\n',
    '\n\n\t1 2 3\t\n 4\n',
    'line\r\rline\r\n',
])
def test_normalize_is_idempotent(raw):
    once = normalize_output(raw)
    assert normalize_output(once) == once


@pytest.mark.parametrize('actual', ['x\n', 'x\r\n', 'x  \n\n'])
def test_incidental_whitespace_is_ignored(actual):
    assert outputs_match('x', actual)


def test_normalize_drops_blank_lines_and_trims_each_line():
    assert normalize_output('  1 \r\n\r\n  2\r3  \n') == '1\n2\n3'


def test_none_normalizes_to_empty():
    assert normalize_output(None) == ''
    assert outputs_match(None, '\n \n')


def test_substantive_differences_still_fail():
    assert not outputs_match('1 2', '1  2')
    assert not outputs_match('a\nb', 'b\na')
    assert not outputs_match('42', '42\n43')
