"""
Unit tests for product lifecycle rules, snapshots and validation.
"""
import unittest
from datetime import date

from merch_planning.core.lifecycle import (
    STAGES, UserProfile, assign_author, cancel_season_end, end_season, format_sku,
    new_product_defaults, next_status, previous_status, season_options, sku_prefix
)
from merch_planning.core.snapshot import ProductSnapshot, SkuLine
from merch_planning.exceptions import CalculationError, ValidationError
from merch_planning.models import ProductStatus
from merch_planning.utils.math_utils import round_half_up, to_bool, to_integer, to_number
from merch_planning.utils.validation import validate_product

BRANDS = {'밸롭': 'B', '웨이든': 'W', '부기프리': 'F', '파스티야': 'P'}

class TestSeasonEnd(unittest.TestCase):
    """Test cases for the season-end toggle."""

    def setUp(self):
        self.product = ProductSnapshot(id='p1', season='2024 S/S', plan_qty=500)

    def test_end_season_records_sold_quantity(self):
        ended = end_season(self.product, 450)

        self.assertTrue(ended.is_season_ended)
        self.assertEqual(ended.actual_sold_qty, 450)
        self.assertTrue(ended.has_actuals)
        self.assertFalse(self.product.is_season_ended)

    def test_sold_quantity_may_exceed_plan(self):
        self.assertEqual(end_season(self.product, 600).actual_sold_qty, 600)

    def test_negative_sold_quantity_is_rejected(self):
        with self.assertRaises(ValidationError) as ctx:
            end_season(self.product, -1)
        self.assertEqual(ctx.exception.details, {'actual_sold_qty': -1})

        with self.assertRaises(ValidationError):
            end_season(self.product, None)

    def test_cancel_resets_sold_quantity(self):
        reopened = cancel_season_end(end_season(self.product, 450))

        self.assertFalse(reopened.is_season_ended)
        self.assertEqual(reopened.actual_sold_qty, 0)
        self.assertFalse(reopened.has_actuals)


class TestStages(unittest.TestCase):

    def test_stage_order(self):
        self.assertEqual([s.value for s in STAGES], ['Plan', 'Sample', 'Production', 'Released'])

    def test_next_and_previous(self):
        self.assertEqual(next_status(ProductStatus.PLAN), ProductStatus.SAMPLE)
        self.assertEqual(next_status(ProductStatus.PRODUCTION), ProductStatus.RELEASED)
        self.assertIsNone(next_status(ProductStatus.RELEASED))

        self.assertEqual(previous_status(ProductStatus.SAMPLE), ProductStatus.PLAN)
        self.assertIsNone(previous_status(ProductStatus.PLAN))

    def test_from_string(self):
        self.assertEqual(ProductStatus.from_string('Sample'), ProductStatus.SAMPLE)
        with self.assertRaises(ValueError):
            ProductStatus.from_string('Shipped')


class TestNewProductDefaults(unittest.TestCase):

    def test_defaults(self):
        planning = {'plan_qty': 100, 'target_sell_through': 70, 'category': 'Clothing',
                    'season_suffix': 'S/S'}
        values = new_product_defaults(planning, date(2026, 3, 1))

        self.assertEqual(values['season'], '2026 S/S')
        self.assertEqual(values['plan_qty'], 100)
        self.assertEqual(values['target_sell_through'], 70)
        self.assertEqual(values['category'], 'Clothing')
        self.assertEqual(values['status'], 'Plan')
        self.assertEqual(values['marketing_budget'], 0)
        self.assertFalse(values['is_season_ended'])

    def test_season_options(self):
        self.assertEqual(
            season_options(2025),
            ['2025 S/S', '2025 F/W', '2026 S/S', '2026 F/W', '2027 S/S', '2027 F/W']
        )
        self.assertEqual(season_options(2025, count=1), ['2025 S/S', '2025 F/W'])


class TestAssignAuthor(unittest.TestCase):

    def test_existing_author_is_kept(self):
        self.assertIsNone(assign_author('Lee', UserProfile('Kim', 'MD'), 'kim@example.com'))

    def test_profile_wins(self):
        self.assertEqual(
            assign_author(None, UserProfile('Kim', 'MD'), 'Display Name'),
            {'author': 'Kim', 'department': 'MD'}
        )

    def test_falls_back_to_display_name(self):
        self.assertEqual(
            assign_author('  ', UserProfile('', 'MD'), 'Display Name'),
            {'author': 'Display Name', 'department': 'MD'}
        )
        self.assertEqual(
            assign_author(None, None, 'Display Name'),
            {'author': 'Display Name', 'department': ''}
        )

    def test_profile_from_config(self):
        profile = UserProfile.from_config({'name': 'Kim', 'department': None})
        self.assertEqual(profile, UserProfile('Kim', ''))


class TestSkuCodes(unittest.TestCase):

    def test_brand_prefix(self):
        self.assertEqual(sku_prefix('밸롭', BRANDS), 'B')
        self.assertEqual(sku_prefix('파스티야', BRANDS), 'P')
        self.assertEqual(sku_prefix('Unknown', BRANDS), 'X')
        self.assertEqual(sku_prefix(None, BRANDS), 'X')

    def test_format_sku(self):
        self.assertEqual(format_sku('B', 1), 'B00000001')
        self.assertEqual(format_sku('W', 12345678), 'W12345678')


class TestProductSnapshot(unittest.TestCase):

    def test_from_camel_case_record(self):
        snapshot = ProductSnapshot.from_record({
            'id': 'abc',
            'season': '2024 S/S',
            'planQty': '500',
            'costPrice': 25000,
            'retailPrice': '89000',
            'targetSellThrough': 85,
            'actualSoldQty': 450,
            'isSeasonEnded': True,
            'skuBreakdown': [{'color': 'Black', 'size': 'M', 'ratio': 100, 'qty': 500}],
        })

        self.assertEqual(snapshot.plan_qty, 500)
        self.assertEqual(snapshot.retail_price, 89000)
        self.assertEqual(snapshot.marketing_budget, 0)
        self.assertEqual(snapshot.actual_sold_qty, 450)
        self.assertTrue(snapshot.has_actuals)
        self.assertEqual(snapshot.sku_breakdown, (SkuLine('Black', 'M', 100, 500),))

    def test_missing_sold_quantity_stays_none(self):
        snapshot = ProductSnapshot.from_record({'id': 'abc', 'is_season_ended': True})
        self.assertIsNone(snapshot.actual_sold_qty)
        self.assertFalse(snapshot.has_actuals)

    def test_season_flag_strings(self):
        self.assertFalse(ProductSnapshot.from_record({'id': 'a', 'isSeasonEnded': 'false'}).is_season_ended)
        self.assertTrue(ProductSnapshot.from_record({'id': 'a', 'isSeasonEnded': 'TRUE'}).is_season_ended)
        with self.assertRaises(CalculationError):
            ProductSnapshot.from_record({'id': 'a', 'isSeasonEnded': 'maybe'})

    def test_fractional_quantities_are_rejected(self):
        with self.assertRaises(CalculationError):
            ProductSnapshot.from_record({'id': 'a', 'planQty': 12.7})
        with self.assertRaises(CalculationError):
            ProductSnapshot.from_record({'id': 'a', 'actualSoldQty': '12.5'})
        with self.assertRaises(CalculationError):
            SkuLine.from_record({'color': 'A', 'size': 'S', 'ratio': 33.3, 'qty': 10})

        self.assertEqual(ProductSnapshot.from_record({'id': 'a', 'planQty': '12.0'}).plan_qty, 12)

    def test_with_changes_returns_copy(self):
        snapshot = ProductSnapshot(id='abc', plan_qty=10)
        changed = snapshot.with_changes(plan_qty=20, sku_breakdown=[SkuLine('A', 'S', 100, 20)])

        self.assertEqual(snapshot.plan_qty, 10)
        self.assertEqual(changed.plan_qty, 20)
        self.assertIsInstance(changed.sku_breakdown, tuple)
        self.assertEqual(changed.to_dict()['sku_breakdown'][0]['qty'], 20)


class TestMathUtils(unittest.TestCase):

    def test_round_half_up(self):
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(3.5), 4)
        self.assertEqual(round_half_up(2.4), 2)
        self.assertEqual(round_half_up(0), 0)

    def test_to_integer(self):
        self.assertEqual(to_integer(None), 0)
        self.assertEqual(to_integer(7.0), 7)
        self.assertEqual(to_integer('7'), 7)
        with self.assertRaises(CalculationError):
            to_integer(7.5)

    def test_to_bool(self):
        self.assertFalse(to_bool(None))
        self.assertTrue(to_bool(None, default=True))
        self.assertTrue(to_bool('yes'))
        self.assertFalse(to_bool(' False '))
        self.assertTrue(to_bool(1))
        self.assertFalse(to_bool(0))
        with self.assertRaises(CalculationError):
            to_bool('sometimes')

    def test_to_number(self):
        self.assertEqual(to_number(None), 0)
        self.assertEqual(to_number(''), 0)
        self.assertEqual(to_number('12'), 12)
        self.assertEqual(to_number('12.5'), 12.5)
        with self.assertRaises(CalculationError):
            to_number('abc')
        with self.assertRaises(CalculationError):
            to_number(True)


class TestValidateProduct(unittest.TestCase):

    def test_valid_product(self):
        product = ProductSnapshot(id='p1', season='2024 S/S', category='Clothing', plan_qty=100,
                                  cost_price=10, retail_price=20, target_sell_through=70)
        self.assertEqual(validate_product(product, status='Plan'), {})

    def test_invalid_fields(self):
        product = ProductSnapshot(
            id='p1', season='', category='Hats', plan_qty=-1, cost_price=-5,
            target_sell_through=120, marketing_budget=-1, is_season_ended=True,
            sku_breakdown=(SkuLine('A', 'S', 101, -1),)
        )
        errors = validate_product(product, status='Shipped')

        for field in ('season', 'category', 'status', 'plan_qty', 'cost_price',
                      'target_sell_through', 'marketing_budget', 'actual_sold_qty',
                      'sku_breakdown[0].ratio', 'sku_breakdown[0].qty'):
            self.assertIn(field, errors)
        self.assertNotIn('retail_price', errors)


if __name__ == '__main__':
    unittest.main()
