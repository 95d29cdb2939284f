"""Company Settings Repository Interface"""

from abc import ABC, abstractmethod


class CompanySettingsRepository(ABC):

    @abstractmethod
    async def allows_negative_balance(self, company_id: str) -> bool:
        """
        Whether the company lets payments take an account below zero

        Returns:
            The company's setting; False when the company has no settings row
        """
        pass
