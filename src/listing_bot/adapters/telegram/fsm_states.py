"""
Telegram-specific FSM state definitions using aiogram's StatesGroup.

The wizard step itself lives in core.listing_wizard.ListingWizard; these
states only track which chat input the bot is waiting for inside a step
(a step such as `basics` takes two messages). Core logic never imports
this module.
"""

from aiogram.fsm.state import State, StatesGroup


class ListingCreation(StatesGroup):
    """
    States for the listing creation wizard.

    Flow (event):   kind → title → description → date → time → location → price | capacity → review
    Flow (service): kind → title → description → schedule → location → price → photos → review
    """

    choosing_kind = State()             # kind: inline keyboard

    entering_title = State()            # basics 1/2
    entering_description = State()      # basics 2/2

    entering_date = State()             # when 1/2 (YYYY-MM-DD or DD.MM.YYYY)
    entering_time = State()             # when 2/2 (HH:MM)

    choosing_schedule_type = State()    # serviceWhen: appointment / availability / slots
    entering_days = State()             # serviceWhen: "mon-fri"
    entering_window = State()           # serviceWhen: "09:00-18:00"
    entering_slots = State()            # serviceWhen: one slot per line

    searching_location = State()        # where: free text or shared location

    entering_price = State()
    entering_capacity = State()         # optional (skip button)

    uploading_photos = State()          # servicePhotos: photo messages + Done

    reviewing = State()                 # review: Publish / Back
