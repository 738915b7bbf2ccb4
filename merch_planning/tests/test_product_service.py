"""
Unit tests for the product service, using a mocked database session.
"""
import unittest
from datetime import date, datetime
from unittest.mock import MagicMock, patch

from sqlalchemy.exc import SQLAlchemyError

from merch_planning.core.lifecycle import UserProfile
from merch_planning.exceptions import NotFoundError, ProductError, StageTransitionError, ValidationError
from merch_planning.models import Product, SkuBreakdownLine, SkuCounter
from merch_planning.services.product_service import ProductService

BRANDS = {'밸롭': 'B', '웨이든': 'W'}

def make_product(**overrides):
    values = dict(
        id='p1', season='2024 S/S', category='Clothing', item_name='Linen Shirt',
        status='Plan', plan_qty=500, cost_price=25000, retail_price=89000,
        target_sell_through=85, marketing_budget=0, is_season_ended=False,
        color_list='', size_list=''
    )
    values.update(overrides)
    return Product(**values)

class ProductServiceTestCase(unittest.TestCase):

    def setUp(self):
        self.session = MagicMock()
        self.service = ProductService(
            self.session,
            profile=UserProfile('Kim', 'MD'),
            brand_prefixes=BRANDS
        )

    def given_product(self, **overrides):
        product = make_product(**overrides)
        self.session.get.return_value = product
        return product

    def given_products(self, products):
        self.session.query.return_value.order_by.return_value.all.return_value = products


class TestProductLookup(ProductServiceTestCase):

    def test_require_product_raises_when_missing(self):
        self.session.get.return_value = None

        with self.assertRaises(NotFoundError) as ctx:
            self.service.require_product('missing')
        self.assertEqual(ctx.exception.code, 'PRODUCT')
        self.assertEqual(ctx.exception.to_dict(), {
            'error': 'NotFoundError',
            'message': 'Product with ID missing not found',
            'code': 'PRODUCT',
            'details': {'id': 'missing'},
        })

    def test_snapshot(self):
        self.given_product(actual_sold_qty=None)
        snapshot = self.service.snapshot('p1')

        self.assertEqual(snapshot.plan_qty, 500)
        self.assertIsNone(snapshot.actual_sold_qty)
        self.assertEqual(snapshot.sku_breakdown, ())


class TestCreateAndSave(ProductServiceTestCase):

    def test_create_product_applies_defaults(self):
        product = self.service.create_product(today=date(2026, 3, 1), item_name='Tee')

        self.session.add.assert_called_once_with(product)
        self.session.commit.assert_called_once()
        self.assertEqual(product.season, '2026 S/S')
        self.assertEqual(product.plan_qty, 100)
        self.assertEqual(product.target_sell_through, 70)
        self.assertEqual(product.status, 'Plan')
        self.assertEqual(product.item_name, 'Tee')
        self.assertEqual(len(product.id), 32)

    def test_create_product_rejects_invalid_values(self):
        with self.assertRaises(ValidationError) as ctx:
            self.service.create_product(today=date(2026, 3, 1), plan_qty=-5)

        self.assertIn('plan_qty', ctx.exception.field_errors)
        self.session.add.assert_not_called()

    def test_save_assigns_profile_author(self):
        product = self.given_product(author=None)

        self.service.save_product('p1', {'item_name': 'Linen Shirt v2'}, display_name='kim', author_uid='u1')

        self.assertEqual(product.item_name, 'Linen Shirt v2')
        self.assertEqual(product.author, 'Kim')
        self.assertEqual(product.department, 'MD')
        self.assertEqual(product.author_uid, 'u1')

    def test_save_keeps_existing_author(self):
        product = self.given_product(author='Lee', department='Design')

        self.service.save_product('p1', {'plan_qty': 600})

        self.assertEqual(product.author, 'Lee')
        self.assertEqual(product.department, 'Design')
        self.assertEqual(product.plan_qty, 600)

    def test_protected_fields_are_ignored(self):
        product = self.given_product()
        self.service.update_fields('p1', {'id': 'other', 'unknown_field': 1, 'supplier': 'ACME'})

        self.assertEqual(product.id, 'p1')
        self.assertEqual(product.supplier, 'ACME')

    def test_commit_failure_is_rolled_back(self):
        self.given_product()
        self.session.commit.side_effect = SQLAlchemyError('disk full')

        with self.assertRaises(ProductError):
            self.service.update_fields('p1', {'supplier': 'ACME'})
        self.session.rollback.assert_called_once()

    def test_rejected_update_is_rolled_back(self):
        self.given_product()

        with self.assertRaises(ValidationError) as ctx:
            self.service.update_fields('p1', {'plan_qty': -5})

        self.assertIn('plan_qty', ctx.exception.field_errors)
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()

    def test_rejected_save_is_rolled_back(self):
        product = self.given_product(author=None)

        with self.assertRaises(ValidationError) as ctx:
            self.service.save_product('p1', {'is_season_ended': True, 'actual_sold_qty': None})

        self.assertIn('actual_sold_qty', ctx.exception.field_errors)
        self.assertIsNone(product.author)
        self.session.rollback.assert_called_once()
        self.session.commit.assert_not_called()

    def test_fractional_quantity_is_rejected(self):
        self.given_product()

        with self.assertRaises(ValidationError):
            self.service.update_fields('p1', {'plan_qty': '12.7'})
        self.session.rollback.assert_called_once()

    def test_delete_product(self):
        product = self.given_product()
        self.assertTrue(self.service.delete_product('p1'))
        self.session.delete.assert_called_once_with(product)


class TestSeasonAndStage(ProductServiceTestCase):

    @patch('merch_planning.services.product_service.product_event')
    def test_end_and_cancel_season(self, mock_event):
        product = self.given_product()

        self.service.end_season('p1', 450)
        mock_event.assert_called_once_with('p1', 'season_ended', actual_sold_qty=450)
        self.assertTrue(product.is_season_ended)
        self.assertEqual(product.actual_sold_qty, 450)

        self.service.cancel_season_end('p1')
        self.assertFalse(product.is_season_ended)
        self.assertEqual(product.actual_sold_qty, 0)

    def test_end_season_rejects_negative_quantity(self):
        product = self.given_product()

        with self.assertRaises(ValidationError):
            self.service.end_season('p1', -3)
        self.assertFalse(product.is_season_ended)
        self.session.commit.assert_not_called()

    def test_advance_and_revert(self):
        product = self.given_product(status='Plan')

        self.service.advance_stage('p1')
        self.assertEqual(product.status, 'Sample')

        self.service.revert_stage('p1')
        self.assertEqual(product.status, 'Plan')

        with self.assertRaises(ProductError):
            self.service.revert_stage('p1')

    def test_cannot_advance_past_released(self):
        self.given_product(status='Released')
        with self.assertRaises(StageTransitionError):
            self.service.advance_stage('p1')

    def test_update_status_rejects_unknown_value(self):
        self.given_product()
        with self.assertRaises(ValidationError):
            self.service.update_status('p1', 'Shipped')


class TestComments(ProductServiceTestCase):

    def test_add_comment(self):
        product = self.given_product()
        comment = self.service.add_comment('p1', 'Sample approved', None, datetime(2026, 3, 1, 9, 0))

        self.assertEqual(comment.author, 'Unknown')
        self.assertEqual(product.comments, [comment])

    def test_blank_comment_is_ignored(self):
        self.assertIsNone(self.service.add_comment('p1', '   ', 'Kim', datetime(2026, 3, 1)))
        self.session.get.assert_not_called()


class TestBreakdown(ProductServiceTestCase):

    def test_generate_breakdown_for_product(self):
        product = self.given_product(color_list='White, Navy', size_list='M, L, XL')

        summary = self.service.generate_breakdown_for_product('p1')

        self.assertTrue(summary.is_reconciled)
        self.assertEqual(len(product.sku_breakdown), 6)
        self.assertEqual([line.position for line in product.sku_breakdown], list(range(6)))
        self.assertEqual(product.sku_breakdown[0].ratio, 17)
        self.assertEqual(product.sku_breakdown[5].qty, 80)

    def test_missing_colors_keeps_breakdown(self):
        product = self.given_product(color_list='', size_list='M')
        product.sku_breakdown = [SkuBreakdownLine(position=0, color='Black', size='M', ratio=100, qty=500)]

        summary = self.service.generate_breakdown_for_product('p1')

        self.assertEqual(summary.total_qty, 500)
        self.assertEqual(len(product.sku_breakdown), 1)
        self.session.commit.assert_not_called()

    def test_adjust_breakdown_ratio(self):
        product = self.given_product(color_list='White, Navy', size_list='M, L, XL')
        self.service.generate_breakdown_for_product('p1')

        summary = self.service.adjust_breakdown_ratio('p1', 4, 1)

        self.assertEqual(product.sku_breakdown[4].ratio, 17)
        self.assertEqual(summary.total_ratio, 101)
        self.assertEqual(summary.total_qty, 505)


class TestSkuGeneration(ProductServiceTestCase):

    def counter_query(self):
        return self.session.query.return_value.filter.return_value.with_for_update.return_value.first

    def test_first_sku_for_brand(self):
        self.counter_query().return_value = None

        self.assertEqual(self.service.generate_next_sku('밸롭'), 'B00000001')
        added = self.session.add.call_args[0][0]
        self.assertIsInstance(added, SkuCounter)
        self.assertEqual(added.last_value, 1)

    def test_increments_existing_counter(self):
        counter = SkuCounter(prefix='W', last_value=7)
        self.counter_query().return_value = counter

        self.assertEqual(self.service.generate_next_sku('웨이든'), 'W00000008')
        self.assertEqual(counter.last_value, 8)

    def test_unknown_brand(self):
        self.counter_query().return_value = None
        self.assertEqual(self.service.generate_next_sku('Other'), 'X00000001')


class TestFilterProducts(ProductServiceTestCase):

    def setUp(self):
        super().setUp()
        self.given_products([
            make_product(id='1', item_name='Linen Shirt', sku='B00000001', category='Clothing',
                         author='Kim', plan_qty=100, actual_sold_qty=None),
            make_product(id='2', item_name='Wool Coat', sku='B00000002', category='Clothing',
                         author='Lee', plan_qty=50, actual_sold_qty=50),
            make_product(id='3', item_name='Leather Boots', sku='W00000001', category='Shoes',
                         author='Kim', plan_qty=30, actual_sold_qty=10),
        ])

    def ids(self, products):
        return [p.id for p in products]

    def test_search_matches_name_or_sku(self):
        self.assertEqual(self.ids(self.service.filter_products(search='SHIRT')), ['1'])
        self.assertEqual(self.ids(self.service.filter_products(search='w0000')), ['3'])

    def test_category_and_author_filters(self):
        self.assertEqual(self.ids(self.service.filter_products(category='Clothing')), ['1', '2'])
        self.assertEqual(self.ids(self.service.filter_products(author='Kim')), ['3', '1'])
        self.assertEqual(len(self.service.filter_products(category='All', author='All')), 3)

    def test_missing_sold_quantity_sorts_as_zero(self):
        products = self.service.filter_products(sort_field='actual_sold_qty', sort_order='desc')
        self.assertEqual(self.ids(products), ['2', '3', '1'])

    def test_invalid_sort_field(self):
        with self.assertRaises(ValidationError):
            self.service.filter_products(sort_field='margin')

    def test_list_authors(self):
        self.assertEqual(self.service.list_authors(), ['Kim', 'Lee'])


if __name__ == '__main__':
    unittest.main()
