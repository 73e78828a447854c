from portal.views.auth_handlers import (
    current_user as current_user,
)
from portal.views.auth_handlers import (
    forgot_password as forgot_password,
)
from portal.views.auth_handlers import (
    list_providers as list_providers,
)
from portal.views.auth_handlers import (
    login as login,
)
from portal.views.auth_handlers import (
    logout as logout,
)
from portal.views.auth_handlers import (
    oauth_callback as oauth_callback,
)
from portal.views.auth_handlers import (
    oauth_start as oauth_start,
)
from portal.views.auth_handlers import (
    reset_password as reset_password,
)
from portal.views.auth_handlers import (
    signup as signup,
)
from portal.views.click_handlers import list_link_clicks as list_link_clicks
from portal.views.click_handlers import record_click as record_click
from portal.views.group_handlers import (
    create_group as create_group,
)
from portal.views.group_handlers import (
    delete_group as delete_group,
)
from portal.views.group_handlers import (
    get_group as get_group,
)
from portal.views.group_handlers import (
    invite_members as invite_members,
)
from portal.views.group_handlers import (
    list_groups as list_groups,
)
from portal.views.group_handlers import (
    list_members as list_members,
)
from portal.views.group_handlers import (
    update_group as update_group,
)
from portal.views.link_handlers import (
    archive_link as archive_link,
)
from portal.views.link_handlers import (
    create_link as create_link,
)
from portal.views.link_handlers import (
    delete_link as delete_link,
)
from portal.views.link_handlers import (
    get_link as get_link,
)
from portal.views.link_handlers import (
    list_links as list_links,
)
from portal.views.link_handlers import (
    update_link as update_link,
)
from portal.views.notification_handlers import list_notifications as list_notifications
from portal.views.notification_handlers import mark_notification_read as mark_notification_read
from portal.views.share_handlers import create_share as create_share
from portal.views.share_handlers import list_link_shares as list_link_shares
