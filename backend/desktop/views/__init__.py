from desktop.views.auth_handlers import login as login
from desktop.views.auth_handlers import logout as logout
from desktop.views.auth_handlers import register as register
from desktop.views.file_handlers import get_file as get_file
from desktop.views.file_handlers import save_file as save_file
from desktop.views.file_handlers import sync as sync
from desktop.views.package_handlers import get_package as get_package
from desktop.views.package_handlers import install_package as install_package
from desktop.views.package_handlers import list_packages as list_packages
from desktop.views.package_handlers import remove_package as remove_package
from desktop.views.package_handlers import search_packages as search_packages
from desktop.views.system_handlers import log_error as log_error
from desktop.views.system_handlers import stats as stats
