from .venus_erc4626 import VenusERC4626


class VenusERC4626Core(VenusERC4626):
    """Vault over a core pool market; rewards are XVS from the comptroller"""

    def claim_rewards(self) -> bool:
        recipient = self._resolve_reward_recipient()

        self._call(self.comptroller, 'claim_venus', self.address)
        xvs = self._call(self.comptroller, 'get_xvs_address')

        self._distribute_reward(xvs, recipient)
        return True
