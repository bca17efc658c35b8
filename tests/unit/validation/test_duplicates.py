import pytest

from titular.validation.duplicates import (
    are_duplicates,
    combined_hash,
    content_hash,
    normalize_for_hash,
    similarity,
)

BODY = (
    'El gobierno anunció este martes una nueva reforma previsional que busca aumentar las pensiones '
    'de los jubilados mediante un aporte adicional de los empleadores.'
)


def test_normalize_for_hash():
    assert normalize_for_hash('  El  Gobierno, hoy! ') == 'el gobierno hoy'
    assert normalize_for_hash('Acción y reacción.') == 'acción y reacción'
    assert normalize_for_hash(None) == ''


def test_content_hash_ignores_case_spacing_and_punctuation():
    reformatted = BODY.upper().replace(' ', '   ').replace('.', '!')

    assert content_hash(BODY) == content_hash(reformatted)
    assert len(content_hash(BODY)) == 64


def test_content_hash_changes_with_the_words():
    assert content_hash(BODY) != content_hash(BODY.replace('martes', 'miércoles'))


@pytest.mark.parametrize('text', [None, '', 'Texto demasiado corto para hashear.'])
def test_content_hash_needs_enough_text(text):
    assert content_hash(text) is None


def test_combined_hash_only_looks_at_the_start_of_the_body():
    long_body = BODY * 20
    corrected = long_body + ' Fe de erratas: la ministra habló el miércoles.'

    assert combined_hash('Reforma de pensiones', long_body) == combined_hash('Reforma de pensiones', corrected)
    assert combined_hash('Reforma de pensiones', long_body) != combined_hash('Otro titular', long_body)
    assert combined_hash('Hola', 'Poco') is None


def test_similarity():
    assert similarity(BODY, BODY.upper()) == 1.0
    assert similarity('uno dos tres', 'uno dos cuatro') == pytest.approx(2 / 4)
    assert similarity(BODY, None) == 0.0


def test_are_duplicates():
    assert are_duplicates(BODY, BODY + ' ')
    assert are_duplicates(BODY, BODY.replace('martes', 'lunes'), threshold=0.8)
    assert not are_duplicates(BODY, 'Temporal deja miles de hogares sin luz en la zona central del país.')
    assert not are_duplicates(BODY, '')
