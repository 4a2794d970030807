#!/usr/bin/env python3
"""
Unit tests for the payload contract shared by the API and the client.

Run with:
    python -m pytest tests/test_validation.py
"""
import datetime
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.validation import (GAME_REQUIRED_FIELDS, MAX_PRICE, ValidationError, to_wire,
                            validate_category, validate_game)

VALID_GAME = {
    'title': 'Hollow Knight',
    'description': 'Descend into Hallownest.',
    'genre': 'Metroidvania',
    'platform': 'PC,Switch',
    'price': 14.99,
}


class TestValidateGame(unittest.TestCase):

    def test_valid_payload_is_normalised(self):
        fields = validate_game(dict(VALID_GAME, release_date='2017-02-24', category_id='3'))
        self.assertEqual(fields['title'], 'Hollow Knight')
        self.assertEqual(fields['price'], 14.99)
        self.assertEqual(fields['release_date'], datetime.date(2017, 2, 24))
        self.assertEqual(fields['category_id'], 3)
        self.assertIsNone(fields['image_url'])

    def test_rating_defaults_to_zero(self):
        self.assertEqual(validate_game(VALID_GAME)['rating'], 0)

    def test_each_required_field_is_enforced(self):
        for field in GAME_REQUIRED_FIELDS:
            payload = dict(VALID_GAME)
            del payload[field]
            with self.assertRaises(ValidationError, msg=field) as ctx:
                validate_game(payload)
            self.assertIn(field, str(ctx.exception))

    def test_blank_string_counts_as_missing(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, title='   '))

    def test_all_missing_fields_reported(self):
        with self.assertRaises(ValidationError) as ctx:
            validate_game({'title': 'Only a title'})
        message = str(ctx.exception)
        for field in ('description', 'genre', 'platform', 'price'):
            self.assertIn(field, message)

    def test_none_payload(self):
        with self.assertRaises(ValidationError):
            validate_game(None)

    def test_zero_price_is_present(self):
        self.assertEqual(validate_game(dict(VALID_GAME, price=0))['price'], 0.0)

    def test_negative_price_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, price=-1))

    def test_non_numeric_price_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, price='cheap'))

    def test_boolean_price_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, price=True))

    def test_non_object_payload_rejected(self):
        for payload in ([dict(VALID_GAME)], 'Hollow Knight', 42):
            with self.assertRaises(ValidationError, msg=repr(payload)) as ctx:
                validate_game(payload)
            self.assertIn('JSON object', str(ctx.exception))

    def test_non_finite_price_rejected(self):
        for price in (float('nan'), float('inf'), float('-inf'), 'inf', 'NaN'):
            with self.assertRaises(ValidationError, msg=repr(price)):
                validate_game(dict(VALID_GAME, price=price))

    def test_non_finite_rating_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, rating=float('nan')))

    def test_price_above_column_limit_rejected(self):
        self.assertEqual(validate_game(dict(VALID_GAME, price=MAX_PRICE))['price'], MAX_PRICE)
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, price=1e12))

    def test_rating_out_of_range_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, rating=10.5))

    def test_rating_bounds_accepted(self):
        self.assertEqual(validate_game(dict(VALID_GAME, rating=10))['rating'], 10.0)
        self.assertEqual(validate_game(dict(VALID_GAME, rating='8.5'))['rating'], 8.5)

    def test_timestamp_release_date_keeps_date(self):
        fields = validate_game(dict(VALID_GAME, release_date='2022-02-25T00:00:00.000Z'))
        self.assertEqual(fields['release_date'], datetime.date(2022, 2, 25))

    def test_bad_release_date_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, release_date='25/02/2022'))

    def test_trailing_text_after_date_rejected(self):
        for value in ('2022-02-25garbage', '2022-02-25 and more', '2022-02-25Tnoon'):
            with self.assertRaises(ValidationError, msg=value):
                validate_game(dict(VALID_GAME, release_date=value))

    def test_datetime_release_date_keeps_date(self):
        fields = validate_game(dict(VALID_GAME, release_date=datetime.datetime(2022, 2, 25, 13, 30)))
        self.assertEqual(fields['release_date'], datetime.date(2022, 2, 25))

    def test_bad_category_id_rejected(self):
        with self.assertRaises(ValidationError):
            validate_game(dict(VALID_GAME, category_id='rpg'))

    def test_fractional_category_id_rejected(self):
        for value in (1.7, '1.5', float('nan')):
            with self.assertRaises(ValidationError, msg=repr(value)):
                validate_game(dict(VALID_GAME, category_id=value))

    def test_whole_float_category_id_accepted(self):
        self.assertEqual(validate_game(dict(VALID_GAME, category_id=3.0))['category_id'], 3)

    def test_revalidating_is_stable(self):
        once = validate_game(dict(VALID_GAME, release_date='2017-02-24', rating=9))
        self.assertEqual(validate_game(once), once)


class TestValidateCategory(unittest.TestCase):

    def test_name_required(self):
        with self.assertRaises(ValidationError):
            validate_category({'description': 'no name'})

    def test_non_object_payload_rejected(self):
        with self.assertRaises(ValidationError):
            validate_category('Indie')

    def test_description_optional(self):
        self.assertEqual(validate_category({'name': ' Indie '}),
                         {'name': 'Indie', 'description': None})


class TestToWire(unittest.TestCase):

    def test_dates_become_strings(self):
        wire = to_wire(validate_game(dict(VALID_GAME, release_date='2017-02-24')))
        self.assertEqual(wire['release_date'], '2017-02-24')

    def test_missing_date_untouched(self):
        self.assertIsNone(to_wire(validate_game(VALID_GAME))['release_date'])


if __name__ == '__main__':
    unittest.main()
