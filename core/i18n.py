"""
Universal LUT Generator - Internationalization Module
Processing-step and error messages in Chinese and English
"""


class I18n:
    """
    Internationalization management class
    Message lookup with language fallback
    """

    TEXTS = {
        # ==================== Processing Steps ====================
        'step_starting': {
            'zh': '开始分析...',
            'en': 'Starting analysis...'
        },
        'step_analysing': {
            'zh': '正在分析图片 {current}/{total}...',
            'en': 'Analysing image {current}/{total}...'
        },
        'step_computing': {
            'zh': '正在计算色彩变换...',
            'en': 'Computing colour transformations...'
        },
        'step_generating': {
            'zh': '正在生成 {size}x{size}x{size} LUT...',
            'en': 'Generating {size}x{size}x{size} LUT...'
        },
        'step_finalising': {
            'zh': '正在写入 LUT 文件...',
            'en': 'Finalising LUT file...'
        },
        'step_complete': {
            'zh': '完成!',
            'en': 'Complete!'
        },

        # ==================== Per-image Stages ====================
        'stage_loading': {
            'zh': '加载',
            'en': 'Loading'
        },
        'stage_analysing': {
            'zh': '分析',
            'en': 'Analysing'
        },
        'stage_computing': {
            'zh': '计算',
            'en': 'Computing'
        },
        'stage_complete': {
            'zh': '完成',
            'en': 'Complete'
        },

        # ==================== Status Messages ====================
        'msg_saved': {
            'zh': '✅ LUT 已生成: {path}\n类型: {lut_type} | 强度: {intensity}x | 精度: {size}³ | 参考图: {used}/{total}',
            'en': '✅ LUT generated: {path}\nType: {lut_type} | Intensity: {intensity}x | Resolution: {size}³ | References: {used}/{total}'
        },
        'msg_skipped': {
            'zh': '⚠️ 已跳过 {count} 张无法分析的图片',
            'en': '⚠️ Skipped {count} image(s) that could not be analysed'
        },
        'lut_type_bw': {
            'zh': '黑白',
            'en': 'B&W'
        },
        'lut_type_colour': {
            'zh': '彩色',
            'en': 'Colour'
        },

        # ==================== Errors ====================
        'err_no_images': {
            'zh': '❌ 请先选择参考图片',
            'en': '❌ Please select at least one reference image'
        },
        'err_too_many_images': {
            'zh': '❌ 最多只能选择 {max} 张图片',
            'en': '❌ Please select up to {max} images only'
        },
        'err_batch_empty': {
            'zh': '❌ 无法分析任何参考图片',
            'en': '❌ Failed to analyse any reference images'
        },
        'err_invalid_config': {
            'zh': '❌ 参数无效: {detail}',
            'en': '❌ Invalid settings: {detail}'
        },
        'err_cancelled': {
            'zh': '🛑 已取消生成',
            'en': '🛑 Generation cancelled'
        },
        'err_generation': {
            'zh': '❌ 生成 LUT 出错, 请重试: {detail}',
            'en': '❌ Error generating LUT. Please try again: {detail}'
        },
    }

    @staticmethod
    def get(key: str, lang: str = 'zh', **kwargs) -> str:
        """
        Get text in specified language

        Args:
            key: Text key name
            lang: Language code ('zh' or 'en')
            **kwargs: Values for {placeholders}

        Returns:
            str: Translated text, returns key itself if key doesn't exist
        """
        if key not in I18n.TEXTS:
            return key
        text = I18n.TEXTS[key].get(lang, I18n.TEXTS[key].get('zh', key))
        return text.format(**kwargs) if kwargs else text
