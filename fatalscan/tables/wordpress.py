"""WordPress core tables used by the function and class detectors."""
from __future__ import annotations
from typing import FrozenSet, Tuple


def _names(block: str) -> FrozenSet[str]:
    return frozenset(block.split())


WORDPRESS_CORE_CLASSES: FrozenSet[str] = _names("""
    WP_Query WP_User_Query WP_Comment_Query WP_Term_Query WP_Site_Query WP_Network_Query
    WP_Meta_Query WP_Date_Query WP_Tax_Query WP_Post WP_User WP_Comment WP_Term WP_Taxonomy
    WP_Post_Type WP_Site WP_Network WP_Error WP_Http WP_HTTP_Response WP_HTTP_Requests_Response
    WP_REST_Server WP_REST_Response WP_REST_Request WP_REST_Controller WP_REST_Posts_Controller
    WP_Widget WP_Widget_Factory WP_Customize_Manager WP_Customize_Control WP_Customize_Setting
    WP_Customize_Section WP_Customize_Panel WP_List_Table WP_Screen WP_Admin_Bar wpdb
    WP_Filesystem_Base WP_Filesystem_Direct WP_Upgrader WP_Upgrader_Skin WP_Ajax_Upgrader_Skin
    Plugin_Upgrader Theme_Upgrader Core_Upgrader Language_Pack_Upgrader Automatic_Upgrader_Skin
    WP_Automatic_Updater WP_Theme WP_Plugin WP_Locale WP_Roles WP_Role WP_Session_Tokens
    WP_User_Meta_Session_Tokens WP_Rewrite WP_Router WP_Hook WP_Dependency WP_Scripts WP_Styles
    WP_Block WP_Block_Type WP_Block_Type_Registry WP_Block_Patterns_Registry WP_Theme_JSON
    WP_Object_Cache WP_Embed WP_oEmbed WP_Image_Editor WP_Textdomain_Registry WP_Application_Passwords
    WP_CLI WP_CLI_Command Walker Walker_Nav_Menu Walker_Category Walker_Page Walker_Comment
    PHPMailer Requests SimplePie
""")

# Exact WordPress function names that do not follow one of the naming prefixes below.
WORDPRESS_FUNCTIONS: FrozenSet[str] = _names("""
    __ _e _x _ex _n _nx _n_noop esc_html esc_attr esc_url esc_url_raw esc_js esc_textarea esc_sql
    esc_html__ esc_attr__ esc_html_e esc_attr_e esc_html_x esc_attr_x
    sanitize_text_field sanitize_email sanitize_key sanitize_title sanitize_file_name sanitize_url
    sanitize_html_class sanitize_user sanitize_meta sanitize_option sanitize_textarea_field
    update_option delete_option update_post_meta delete_post_meta update_user_meta delete_user_meta
    update_term_meta delete_term_meta current_user_can user_can current_time date_i18n human_time_diff
    absint trailingslashit untrailingslashit plugin_dir_path plugin_dir_url plugins_url plugin_basename
    admin_url site_url home_url content_url includes_url network_admin_url self_admin_url
    load_plugin_textdomain load_theme_textdomain set_transient delete_transient
    set_site_transient delete_site_transient check_ajax_referer check_admin_referer
    shortcode_atts strip_shortcodes do_shortcode wpautop wptexturize zeroise selected checked disabled
    settings_fields settings_errors submit_button locate_template load_template comments_template
    dynamic_sidebar sidebar_is_populated flush_rewrite_rules term_exists taxonomy_exists post_type_exists
    username_exists email_exists validate_username url_to_postid did_action doing_action doing_filter
    current_action current_filter update_site_option delete_site_option update_network_option
    setup_postdata post_class body_class language_attributes bloginfo comments_open pings_open
    single_cat_title single_tag_title single_post_title paginate_links absint
    maybe_serialize maybe_unserialize map_deep stripslashes_deep
    status_header nocache_headers send_origin_headers dbDelta media_handle_upload media_sideload_image
    download_url unzip_file copy_dir request_filesystem_credentials submit_button
    add_query_arg remove_query_arg size_format number_format_i18n antispambot make_clickable
    balanceTags force_balance_tags convert_smilies capital_P_dangit
    shortcode_exists shortcode_unautop
""")

WORDPRESS_FUNCTION_PREFIXES: Tuple[str, ...] = (
    "wp_", "get_", "the_", "is_", "has_", "add_", "remove_", "do_", "apply_",
    "register_", "enqueue_", "dequeue_",
)

# Functions defined in wp-admin/includes/plugin.php, which front-end requests do not load.
WORDPRESS_ADMIN_FUNCTIONS: FrozenSet[str] = _names("""
    is_plugin_active is_plugin_active_for_network is_plugin_inactive is_plugin_paused
    is_network_only_plugin activate_plugin activate_plugins deactivate_plugins delete_plugins
    get_plugins get_plugin_data get_mu_plugins get_dropins validate_plugin plugin_sandbox_scrape
    get_plugin_files is_uninstallable_plugin uninstall_plugin
""")
