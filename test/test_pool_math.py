"""
Unit tests for the fixed point helpers and the pool math library.

Expected values follow the LibInsurance unit tests of the contracts.
"""

import unittest
import sys
import os
from decimal import Decimal

# Add the project root to the path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from insurance_model.config import FUNDING_RATE_SCALER, WAD
from insurance_model.errors import DivisionByZero, InvalidAmount
from insurance_model.fixed_point import div_wad, from_wad, mul_wad, to_wad
from insurance_model.pool_math import (
    calc_mint_amount,
    calc_withdraw_amount,
    calculate_immediate_withdrawal_fee,
    get_pool_funding_rate,
    get_pool_target,
)


class TestFixedPoint(unittest.TestCase):
    def test_mul_wad(self):
        self.assertEqual(mul_wad(2 * WAD, 3 * WAD), 6 * WAD)
        self.assertEqual(mul_wad(to_wad("1.5"), to_wad("0.5")), to_wad("0.75"))

    def test_mul_wad_truncates(self):
        """Products below one unit of precision are truncated away"""
        self.assertEqual(mul_wad(1, 1), 0)
        self.assertEqual(mul_wad(3, WAD // 2), 1)

    def test_div_wad(self):
        self.assertEqual(div_wad(6 * WAD, 3 * WAD), 2 * WAD)
        self.assertEqual(div_wad(WAD, 3 * WAD), 333_333_333_333_333_333)

    def test_div_wad_by_zero(self):
        with self.assertRaises(DivisionByZero) as context:
            div_wad(WAD, 0)
        self.assertEqual(context.exception.reason, "INS: division by zero")

    def test_truncation_toward_zero_for_negatives(self):
        """Negative results round toward zero, not toward minus infinity"""
        self.assertEqual(mul_wad(-1, 1), 0)
        self.assertEqual(div_wad(-WAD, 3 * WAD), -333_333_333_333_333_333)
        self.assertEqual(div_wad(WAD, -3 * WAD), -333_333_333_333_333_333)
        self.assertEqual(div_wad(-WAD, -3 * WAD), 333_333_333_333_333_333)

    def test_to_wad(self):
        self.assertEqual(to_wad(1), WAD)
        self.assertEqual(to_wad("1.05"), 1_050_000_000_000_000_000)
        self.assertEqual(to_wad(Decimal("0.000000000000000001")), 1)
        self.assertEqual(to_wad("123456789012.123456789012345678"), 123456789012123456789012345678)

    def test_to_wad_rejects_inexact_values(self):
        with self.assertRaises(InvalidAmount):
            to_wad(1.05)
        with self.assertRaises(InvalidAmount):
            to_wad("0.0000000000000000001")
        with self.assertRaises(InvalidAmount):
            to_wad("one")
        with self.assertRaises(InvalidAmount):
            to_wad("Infinity")

    def test_from_wad(self):
        self.assertEqual(from_wad(1_050_000_000_000_000_000), Decimal("1.05"))


class TestPoolMath(unittest.TestCase):
    def setUp(self):
        self.zero = 0

    def test_calc_mint_amount_zero_guards(self):
        """Returns 0 whenever supply, collateral held or stake is 0"""
        self.assertEqual(calc_mint_amount(self.zero, self.zero, self.zero), 0)
        self.assertEqual(calc_mint_amount(to_wad(10), to_wad(5), self.zero), 0)
        self.assertEqual(calc_mint_amount(to_wad(10), self.zero, to_wad(10)), 0)
        self.assertEqual(calc_mint_amount(self.zero, to_wad(5), to_wad(10)), 0)

    def test_calc_mint_amount(self):
        """Supply 10 backed by 5 collateral mints 20 shares for a 10 stake"""
        self.assertEqual(calc_mint_amount(to_wad(10), to_wad(5), to_wad(10)), to_wad(20))

    def test_calc_withdraw_amount_zero_guards(self):
        self.assertEqual(calc_withdraw_amount(self.zero, self.zero, self.zero), 0)
        self.assertEqual(calc_withdraw_amount(to_wad(10), to_wad(5), self.zero), 0)
        self.assertEqual(calc_withdraw_amount(to_wad(5), self.zero, to_wad(10)), 0)
        self.assertEqual(calc_withdraw_amount(self.zero, to_wad(5), to_wad(10)), 0)

    def test_calc_withdraw_amount(self):
        """Burning 10 of 10 shares backed by 5 collateral releases 5"""
        self.assertEqual(calc_withdraw_amount(to_wad(10), to_wad(5), to_wad(10)), to_wad(5))

    def test_mint_then_redeem_loses_at_most_one_unit(self):
        supply, held = to_wad(7), to_wad(3)
        for stake in (1, 999, to_wad("0.333333333333333333"), to_wad(11)):
            shares = calc_mint_amount(supply, held, stake)
            redeemed = calc_withdraw_amount(supply + shares, held + stake, shares)
            self.assertLessEqual(redeemed, stake)
            self.assertLessEqual(stake - redeemed, 2)

    def test_get_pool_target(self):
        """Target is 1% of the leveraged notional value"""
        self.assertEqual(get_pool_target(to_wad(100)), to_wad(1))
        self.assertEqual(get_pool_target(self.zero), 0)

    def test_get_pool_funding_rate(self):
        """0.0036523 scaled by the shortfall fraction of notional"""
        rate = get_pool_funding_rate(to_wad(100), to_wad(50), to_wad(10_000))
        self.assertEqual(rate, to_wad("0.0000182615"))

        full_shortfall = get_pool_funding_rate(to_wad(100), 0, to_wad(100))
        self.assertEqual(full_shortfall, FUNDING_RATE_SCALER)

    def test_get_pool_funding_rate_zero_cases(self):
        self.assertEqual(get_pool_funding_rate(to_wad(100), to_wad(50), self.zero), 0)
        self.assertEqual(get_pool_funding_rate(to_wad(100), to_wad(50), -to_wad(1)), 0)
        self.assertEqual(get_pool_funding_rate(to_wad(100), to_wad(100), to_wad(10_000)), 0)
        self.assertEqual(get_pool_funding_rate(to_wad(100), to_wad(150), to_wad(10_000)), 0)

    def test_immediate_withdrawal_fee_zero_target(self):
        fee = calculate_immediate_withdrawal_fee(self.zero, to_wad(1000), to_wad(1234), to_wad(4567))
        self.assertEqual(fee, 0)

    def test_immediate_withdrawal_fee(self):
        """(1 - 110/200)^2 = 0.2025 of 15 collateral"""
        fee = calculate_immediate_withdrawal_fee(to_wad(100), to_wad(90), to_wad(20), to_wad(15))
        self.assertEqual(fee, to_wad("3.0375"))

    def test_immediate_withdrawal_fee_at_or_above_target(self):
        fee = calculate_immediate_withdrawal_fee(to_wad(100), to_wad(150), to_wad(50), to_wad(15))
        self.assertEqual(fee, 0)
        fee = calculate_immediate_withdrawal_fee(to_wad(100), to_wad(500), to_wad(400), to_wad(15))
        self.assertEqual(fee, 0)

    def test_immediate_withdrawal_fee_empty_pool(self):
        """With nothing backing the pool the whole amount is charged"""
        fee = calculate_immediate_withdrawal_fee(to_wad(100), 0, 0, to_wad(15))
        self.assertEqual(fee, to_wad(15))


if __name__ == "__main__":
    unittest.main()
