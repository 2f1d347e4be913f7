from clinical.intelligence.allergies import AllergyCrossReactivityResolver

resolver = AllergyCrossReactivityResolver.default()


def test_cross_class_penicillin_amoxicillin():
    assert 'penicillin' not in 'amoxicillin'
    assert resolver.is_direct_match('amoxicillin', 'penicillin') is False
    assert resolver.cross_reacting_classes('amoxicillin', 'penicillin') == ['penicillin']
    assert resolver.is_contraindicated('amoxicillin', 'penicillin')


def test_direct_match_is_bidirectional():
    assert resolver.is_contraindicated('aspirin', 'aspirin')
    assert resolver.is_contraindicated('co-codamol', 'codamol')
    assert resolver.is_contraindicated('ibuprofen', 'ibuprofen lysine')


def test_class_key_contained_in_substance():
    assert resolver.is_contraindicated('tramadol', 'codeine phosphate')
    assert resolver.is_contraindicated('sulfamethoxazole', 'sulfa drugs')


def test_unrelated_is_not_contraindicated():
    assert not resolver.is_contraindicated('paracetamol', 'penicillin')
    assert not resolver.is_contraindicated('cefalexin', 'sulfa')


def test_blank_names_never_match():
    assert not resolver.is_contraindicated('', 'penicillin')
    assert not resolver.is_contraindicated('amoxicillin', '')


def test_custom_class_map():
    r = AllergyCrossReactivityResolver({'nsaid': ['ibuprofen', 'naproxen']})
    assert r.is_contraindicated('naproxen', 'nsaid')
    assert not r.is_contraindicated('amoxicillin', 'penicillin')
