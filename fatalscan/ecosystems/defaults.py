"""Built-in ecosystem signatures and suppression tables.

These are plain data. The managers copy them on construction, so extending one
manager instance never leaks into another.
"""
from __future__ import annotations
from typing import Any, Dict, List


ECOSYSTEM_PATTERNS: Dict[str, Dict[str, List[str]]] = {
    "elementor": {
        "headers": [
            "Elementor tested up to",
            "Elementor Pro tested up to",
            "Requires Plugins: elementor",
        ],
        "file_patterns": ["/widgets/", "/controls/", "/modules/", "elementor"],
        "class_patterns": [
            "Elementor\\",
            "Controls_Manager",
            "Widget_Base",
            "Group_Control_",
            "Core\\Kits\\Documents\\Tabs\\",
        ],
        "function_patterns": ["elementor_pro_load_plugin", "elementor_load_plugin_textdomain"],
        "composer_packages": ["elementor/elementor"],
    },
    "woocommerce": {
        "headers": [
            "WC tested up to",
            "WC requires at least",
            "Requires Plugins: woocommerce",
        ],
        "file_patterns": ["/woocommerce/", "/includes/wc-", "wc-"],
        "class_patterns": ["WooCommerce\\", "WC_"],
        "function_patterns": ["wc_get_", "woocommerce_", "is_woocommerce"],
        "composer_packages": ["woocommerce/woocommerce"],
    },
}


ECOSYSTEM_EXCEPTIONS: Dict[str, Dict[str, List[str]]] = {
    "elementor": {
        "classes": [
            # core
            "Controls_Manager", "Widget_Base", "Core\\Base\\Module", "Core\\Base\\App", "Plugin",
            "Elementor\\Plugin", "Utils", "Icons_Manager", "Scheme_Color", "Scheme_Typography",
            "TagsModule", "Repeater", "Global_Typography", "Global_Colors",
            # group controls
            "Group_Control_Typography", "Group_Control_Text_Shadow", "Group_Control_Box_Shadow",
            "Group_Control_Border", "Group_Control_Background", "Group_Control_Image_Size",
            "Group_Control_Css_Filter",
            # modules and documents
            "Modules\\DynamicTags\\Module", "Core\\Kits\\Documents\\Tabs\\Global_Colors",
            "Core\\Kits\\Documents\\Tabs\\Global_Typography", "Core\\DocumentTypes\\Page",
            "Core\\DocumentTypes\\Post",
            # stock widgets
            "Widget_Heading", "Widget_Image", "Widget_Text_Editor", "Widget_Button", "Widget_Divider",
            "Widget_Spacer", "Widget_Google_Maps", "Widget_Icon", "Widget_Icon_List", "Widget_Counter",
            "Widget_Progress", "Widget_Testimonial", "Widget_Tabs", "Widget_Accordion", "Widget_Toggle",
            "Widget_Social_Icons", "Widget_Alert", "Widget_Audio", "Widget_Shortcode", "Widget_Html",
            "Widget_Sidebar", "Widget_Menu_Anchor", "Widget_Read_More",
            # addon packs built on Elementor
            "HelperClass", "Essential_Addons_Elementor\\Classes\\Bootstrap",
            "Essential_Addons_Elementor\\Classes\\WPDeveloper_Setup_Wizard",
            "Essential_Addons_Elementor\\Classes\\Helper", "Essential_Addons_Elementor\\Pro\\Classes\\Helper",
            "Essential_Addons_Elementor\\Classes\\Plugin_Usage_Tracker",
            "Woo_Cart_Shortcode", "Woo_Product_List", "Product_Grid",
            "Control_Choose", "Base_Data_Control",
        ],
        "class_patterns": [
            "Elementor\\*", "ElementorPro\\*", "Essential_Addons_Elementor\\Pro\\*",
            "Group_Control_*", "Widget_*", "Core\\*", "Modules\\*",
        ],
        "functions": [
            "elementor_pro_load_plugin", "elementor_load_plugin_textdomain", "elementor_get_post_id",
            "elementor_get_edit_mode", "elementor_is_edit_mode", "elementor_is_preview_mode",
        ],
        "function_patterns": ["elementor_*"],
    },
    "woocommerce": {
        "classes": [
            "WooCommerce", "WC_Product", "WC_Order", "WC_Customer", "WC_Cart", "WC_Checkout",
            "WC_Payment_Gateway", "WC_Shipping_Method", "WC_Tax", "WC_Coupon", "WC_Session", "WC_Query",
            "WC_Admin", "WC_AJAX", "WC_API", "WC_Auth", "WC_Cache_Helper", "WC_Comments", "WC_Countries",
            "WC_Data_Store", "WC_DateTime", "WC_Download_Handler", "WC_Emails", "WC_Form_Handler",
            "WC_Frontend_Scripts", "WC_Geolocation", "WC_HTTPS", "WC_Install", "WC_Logger",
            "WC_Order_Factory", "WC_Post_Data", "WC_Product_Factory", "WC_REST_API", "WC_Shortcodes",
            "WC_Template_Loader", "WC_Tracker", "WC_Validation", "WC_Webhook",
            "Automattic\\WooCommerce\\Utilities\\FeaturesUtil", "WC_Admin_Settings", "WC_Settings_API",
            "WC_Integration", "WC_Widget",
        ],
        "class_patterns": ["WC_*", "WooCommerce\\*", "Automattic\\WooCommerce\\*"],
        "functions": [
            "wc_get_product", "wc_get_order", "wc_get_customer", "wc_get_page_id", "wc_get_template",
            "wc_get_template_part", "wc_locate_template", "wc_price", "wc_format_decimal", "wc_clean",
            "wc_sanitize_tooltip", "wc_help_tip", "wc_add_notice", "wc_print_notices", "wc_get_notices",
            "wc_clear_notices", "is_woocommerce", "is_shop", "is_product_category", "is_product_tag",
            "is_product", "is_cart", "is_checkout", "is_account_page", "is_wc_endpoint_url", "WC",
        ],
        "function_patterns": ["wc_*", "woocommerce_*", "is_wc_*", "is_woocommerce*"],
    },
}


GLOBAL_EXCEPTIONS: Dict[str, List[str]] = {
    "classes": [
        # third-party libraries usually pulled in through composer
        "Composer\\Autoload\\ClassLoader", "Psr\\Log\\LoggerInterface", "Monolog\\Logger",
        "Twig\\Environment", "Symfony\\Component\\HttpFoundation\\Request",
        "Symfony\\Component\\HttpFoundation\\Response", "Doctrine\\DBAL\\Connection", "GuzzleHttp\\Client",
        "Google_Client", "EDD_SL_Plugin_Updater",
        # CSS class names echoed in markup
        "rating", "span", "loader", "button", "hover", "inner", "time", "strings", "child", "not",
        # browser objects referenced from inline JavaScript
        "XMLHttpRequest", "RegExp", "Date", "Tag", "Module",
        # widely shared helper class names in addon packs
        "Helper", "ControlsHelper", "ClassesHelper", "Elements_Manager", "Plugin_Usage_Tracker",
        "Asset_Builder", "HelperCLass", "Helper_Class",
        # other plugins commonly integrated with
        "RGFormsModel", "Caldera_Forms_Forms", "BetterDocs_DB", "FluentForm\\App\\Helpers\\Helper",
    ],
    "class_patterns": [],
    "functions": [
        # CSS functions and keywords inside echoed styles
        "calc", "rgba", "rgb", "hsl", "hsla", "gradient", "var", "url", "attr", "counter", "counters",
        "translate", "translateX", "translateY", "translateZ", "rotate", "rotateX", "rotateY", "rotateZ",
        "scale", "scaleX", "scaleY", "skew", "skewX", "skewY", "perspective", "matrix", "minmax",
        "repeat", "clamp", "steps", "cubic", "media", "not", "child", "hover", "active", "focus",
        "visited", "disabled",
        # JavaScript and SQL fragments
        "XMLHttpRequest", "and", "or", "WHERE", "LENGTH", "COUNT", "SUM", "IN", "VALUES",
        # third-party plugin APIs
        "acf_get_field_groups", "acf_get_fields", "acf_get_field", "get_field", "tribe_get_events",
        "wpforms_display", "gravity_form", "ninja_table_get_table_settings", "ninja_table_get_table_columns",
        "ld_get_mycourses", "learndash_get_course_price", "learndash_get_group_price", "sfwd_lms_has_access",
        "learndash_course_completed", "learndash_is_user_in_group",
    ],
    "function_patterns": [
        "wp_*", "get_*", "is_*", "has_*", "the_*", "esc_*", "sanitize_*",
    ],
}


# Widget template exclusions, keyed by ecosystem then widget type.
DEFAULT_WIDGET_EXCLUSIONS: Dict[str, Dict[str, Dict[str, Any]]] = {
    "elementor": {
        "content_timeline": {
            "status": "temporary_exclude",
            "reason": "No load more functionality currently, but may be added in future",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "review_date": "2024-12-01",
            "future_proof": True,
        },
        "post_carousel": {
            "status": "exclude",
            "reason": "Carousel widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "product_carousel": {
            "status": "exclude",
            "reason": "Carousel widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "media_carousel": {
            "status": "exclude",
            "reason": "Carousel widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "testimonial_carousel": {
            "status": "exclude",
            "reason": "Carousel widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "logo_carousel": {
            "status": "exclude",
            "reason": "Carousel widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["TEMPLATE_METHOD_CONTEXT_ERROR", "THIS_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "post_list": {
            "status": "include",
            "reason": "Has load more functionality, errors are legitimate",
            "methods": [],
            "error_types": [],
            "future_proof": True,
        },
        "post_grid": {
            "status": "include",
            "reason": "Has load more functionality, errors are legitimate",
            "methods": [],
            "error_types": [],
            "future_proof": True,
        },
        "woo_account_dashboard": {
            "status": "exclude",
            "reason": "Account dashboard widgets typically do not have load more functionality",
            "methods": ["*"],
            "error_types": ["THIS_CONTEXT_ERROR", "TEMPLATE_METHOD_CONTEXT_ERROR"],
            "future_proof": False,
        },
        "ld_courses": {
            "status": "exclude",
            "reason": "LearnDash course widgets typically use pagination, not AJAX load more",
            "methods": ["*"],
            "error_types": ["THIS_CONTEXT_ERROR", "TEMPLATE_METHOD_CONTEXT_ERROR"],
            "future_proof": False,
        },
    },
}

# Path substring -> widget type, matched against the lower-cased path with "_" folded to "-".
WIDGET_PATH_TAGS: List[tuple] = [
    ("content-timeline", "content_timeline"),
    ("post-carousel", "post_carousel"),
    ("product-carousel", "product_carousel"),
    ("media-carousel", "media_carousel"),
    ("testimonial-carousel", "testimonial_carousel"),
    ("logo-carousel", "logo_carousel"),
    ("post-list", "post_list"),
    ("post-grid", "post_grid"),
    ("woo-account-dashboard", "woo_account_dashboard"),
    ("ld-courses", "ld_courses"),
    ("learn-dash-course", "ld_courses"),
]
UNKNOWN_WIDGET = "unknown_widget"
