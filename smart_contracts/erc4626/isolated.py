from ..errors import RecipientNotSupported
from .venus_erc4626 import VenusERC4626


class VenusERC4626Isolated(VenusERC4626):
    """Vault over an isolated pool market.

    Rewards come from every distributor registered on the pool comptroller
    and are always booked in the protocol share reserve, so the recipient
    has to be a reserve contract.
    """

    def claim_rewards(self) -> bool:
        distributors = self._call(self.comptroller, 'get_reward_distributors')
        self._ensure_max_loops(len(distributors))

        recipient = self._resolve_reward_recipient()
        if not recipient.is_share_reserve:
            raise RecipientNotSupported(recipient.address)

        reward_tokens = []
        for distributor in distributors:
            reward_token = self._call(distributor, 'reward_token')
            self._call(distributor, 'claim_reward_token', self.address, [self.v_token])
            if reward_token not in reward_tokens:
                reward_tokens.append(reward_token)

        for reward_token in reward_tokens:
            self._distribute_reward(reward_token, recipient)
        return True
