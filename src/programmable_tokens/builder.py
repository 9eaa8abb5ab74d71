"""
Plan Builder

Turns a TransactionPlan into an unsigned pycardano Transaction. Fee
balancing, collateral selection and execution units are left to
pycardano's TransactionBuilder.
"""

import logging
from typing import List

import pycardano as pc

from .assembler import PlannedOutput, TransactionPlan
from .exceptions import AssemblyFailure, ProgrammableTokenError


logger = logging.getLogger(__name__)


def rotate_change_output(body: pc.TransactionBody, change_address: pc.Address, planned: int) -> pc.TransactionBody:
    """
    Move a change output sitting in the first slot to the last slot

    Planned outputs keep their relative order; only an extra output paying
    the change address at index 0 is moved.
    """
    outputs = list(body.outputs)
    if len(outputs) > planned and outputs and outputs[0].address == change_address:
        body.outputs = outputs[1:] + outputs[:1]
    return body


def _check_outputs_preserved(body: pc.TransactionBody, outputs: List[PlannedOutput]):
    """Every planned output must survive balancing with its own assets"""
    remaining = list(body.outputs)
    for planned in outputs:
        for index, output in enumerate(remaining):
            if output.address == planned.address and output.amount.multi_asset == planned.multi_asset:
                del remaining[index]
                break
        else:
            raise AssemblyFailure(f"Output to {planned.address} was merged or dropped while balancing")


class PlanBuilder:
    """Builds unsigned transactions from plans against a chain context"""

    def __init__(self, context: pc.ChainContext):
        self.context = context

    def _output(self, planned: PlannedOutput) -> pc.TransactionOutput:
        min_val = pc.min_lovelace(
            self.context,
            output=pc.TransactionOutput(
                planned.address,
                pc.Value(planned.lovelace, planned.multi_asset),
                datum=planned.datum,
            ),
        )
        return pc.TransactionOutput(
            address=planned.address,
            amount=pc.Value(coin=max(min_val, planned.lovelace), multi_asset=planned.multi_asset),
            datum=planned.datum,
        )

    def build(self, plan: TransactionPlan) -> pc.Transaction:
        """
        Balance a plan into an unsigned transaction

        Args:
            plan: Transaction plan from the assembler

        Returns:
            Unsigned pycardano Transaction with redeemers and scripts attached

        Raises:
            AssemblyFailure: On any builder error
        """
        try:
            builder = pc.TransactionBuilder(self.context)

            for utxo in plan.fee_inputs:
                builder.add_input(utxo)

            for script_input in plan.script_inputs:
                builder.add_script_input(
                    script_input.utxo,
                    script=script_input.script,
                    redeemer=pc.Redeemer(script_input.redeemer),
                )

            if plan.mints:
                builder.mint = plan.mint_value()
                added = set()
                for entry in plan.mints:
                    if entry.policy_id in added:
                        continue
                    added.add(entry.policy_id)
                    builder.add_minting_script(script=entry.script, redeemer=pc.Redeemer(entry.redeemer))

            if plan.withdrawals:
                builder.withdrawals = pc.Withdrawals(
                    {bytes(w.reward_address): w.amount for w in plan.withdrawals}
                )
                for withdrawal in plan.withdrawals:
                    builder.add_withdrawal_script(withdrawal.script, redeemer=pc.Redeemer(withdrawal.redeemer))

            for utxo in plan.reference_inputs:
                builder.reference_inputs.add(utxo)

            if plan.required_signers:
                builder.required_signers = list(plan.required_signers)

            for planned in plan.outputs:
                builder.add_output(self._output(planned))

            body = builder.build(change_address=plan.change_address, merge_change=False)
            witness_set = builder.build_witness_set()
        except ProgrammableTokenError:
            raise
        except Exception as e:
            logger.error(f"Transaction build failed: {e}")
            raise AssemblyFailure(f"Transaction build failed: {e}") from e

        body = rotate_change_output(body, plan.change_address, len(plan.outputs))
        _check_outputs_preserved(body, plan.outputs)

        return pc.Transaction(body, witness_set)
